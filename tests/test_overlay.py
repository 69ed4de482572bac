import numpy as np
import pytest

from conftest import RecordingSurface, make_artwork, make_pose
from posesort.overlay import OverlayRenderer, OverlayStyle, PillowSurface
from posesort.pose.topology import COCO17, COCO17_ADJACENT_PAIRS, PoseTopology
from posesort.pose.types import Keypoint


FRAME = np.zeros((480, 640, 3), dtype=np.uint8)


def _render(pose, artwork=None, style=None):
	surface = RecordingSurface()
	OverlayRenderer(style).render(surface, FRAME, pose.keypoints, artwork)
	return surface


def test_full_confidence_draws_everything():
	art = make_artwork()
	s = _render(make_pose(), art)
	assert s.calls[0] == ("clear",)
	assert s.calls[1] == ("image", FRAME, 0, 0, 640, 480)
	images = s.of("image")
	assert len(images) == 2
	assert images[1][1] is art.image
	assert len(s.of("circle")) == 17
	assert len(s.of("line")) == len(COCO17_ADJACENT_PAIRS)


def test_anchor_is_centered_and_lifted():
	# nose at (100, 200)
	s = _render(make_pose(), make_artwork())
	_, _img, x, y, w, h = s.of("image")[1]
	assert (w, h) == (150, 150)
	assert x == 100 - 75
	assert y == 200 - 75 - 150


@pytest.mark.parametrize("nose_score", [0.3, 0.1, 0.0])
def test_low_confidence_head_skips_anchor(nose_score):
	s = _render(make_pose({"nose": nose_score}), make_artwork())
	assert len(s.of("image")) == 1  # only the video frame


def test_missing_artwork_skips_anchor():
	s = _render(make_pose(), None)
	assert len(s.of("image")) == 1
	assert len(s.of("circle")) == 17


def test_edge_with_one_weak_endpoint_is_omitted():
	# left_shoulder(5) weak: drops 5-6, 5-7, 5-11 regardless of the other end
	s = _render(make_pose({"left_shoulder": 0.2}))
	drawn = {(c[1], c[2], c[3], c[4]) for c in s.of("line")}
	ls = (100 + 10 * 5, 200 + 5 * 5)
	assert all((x0, y0) != ls and (x1, y1) != ls for x0, y0, x1, y1 in drawn)
	assert len(s.of("line")) == len(COCO17_ADJACENT_PAIRS) - 3
	assert len(s.of("circle")) == 16


def test_threshold_is_strict():
	s = _render(make_pose(default=0.3))
	assert s.of("circle") == []
	assert s.of("line") == []


def test_custom_style_is_used():
	style = OverlayStyle(confidence_threshold=0.5, anchor_size=40, anchor_y_offset=10, marker_radius=3, line_width=7)
	s = _render(make_pose(default=0.6), make_artwork(), style)
	_, _img, x, y, w, h = s.of("image")[1]
	assert (x, y, w, h) == (80, 200 - 20 - 10, 40, 40)
	assert all(c[3] == 3 for c in s.of("circle"))
	assert all(c[5] == 7 for c in s.of("line"))


def test_short_sample_drops_out_of_range_edges():
	pose = make_pose()
	kps = pose.keypoints[:7]  # nose..right_shoulder
	surface = RecordingSurface()
	OverlayRenderer().render(surface, FRAME, kps, None)
	assert len(surface.of("line")) == 5  # (0,1) (0,2) (1,3) (2,4) (5,6)


def test_topology_rejects_bad_edges():
	with pytest.raises(ValueError):
		PoseTopology(name="bad", keypoint_names=("a", "b"), adjacent_pairs=((0, 2),))


def test_render_is_deterministic():
	pose = make_pose({"left_wrist": 0.1, "nose": 0.8})
	art = make_artwork()
	assert _render(pose, art).calls == _render(pose, art).calls


def test_pillow_surface_composes_pixels():
	frame = np.full((120, 160, 3), 10, dtype=np.uint8)
	surface = PillowSurface(160, 120)
	kps = (
		Keypoint("nose", 80.0, 100.0, 0.9),
		Keypoint("left_eye", 40.0, 20.0, 0.9),
	)
	topo = PoseTopology(name="two", keypoint_names=("nose", "left_eye"), adjacent_pairs=((0, 1),))
	style = OverlayStyle(anchor_size=20, anchor_y_offset=50)
	OverlayRenderer(style, topology=topo).render(surface, frame, kps, make_artwork(color=(0, 255, 0, 255)))

	img = surface.image
	assert img.getpixel((5, 5)) == (10, 10, 10)
	assert img.getpixel((84, 100)) == (255, 0, 0)  # red marker on the nose
	assert img.getpixel((85, 50)) == (0, 255, 0)  # artwork box (70, 40, 20, 20)
	jpeg = surface.encode_jpeg(70)
	assert jpeg[:2] == b"\xff\xd8"


def test_coco17_edges_are_valid():
	assert COCO17.edges_for(17) == COCO17_ADJACENT_PAIRS
	assert len(COCO17.keypoint_names) == 17
