# -*- coding: utf-8 -*-
"""
Planar Object Detector Tests.

End-to-end tests for PlanarObjectDetector on the synthetic checkerboard
scenes: lifecycle states, detection accuracy, acceptance threshold,
occlusion, region handling, rectification, and the descriptor classifier.

Author
------
Steven Siebert

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-10-19

Modified
--------
2026-10-19
"""

import numpy as np
import pytest

try:
    import cv2
    _HAS_CV2 = True
except ImportError:
    _HAS_CV2 = False

pytestmark = pytest.mark.skipif(
    not _HAS_CV2, reason="opencv-python-headless not installed"
)

from conftest import BACKGROUND, SCENE_SHAPE


@pytest.fixture
def detector():
    from plandet.detector import PlanarObjectDetector
    return PlanarObjectDetector()


@pytest.fixture
def built(detector, reference_image, reference_roi):
    assert detector.build_reference(reference_image, reference_roi) > 0
    return detector


@pytest.fixture
def blank_image():
    return np.full(SCENE_SHAPE, BACKGROUND, dtype=np.uint8)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestConstruction:
    """Test constructor parameters."""

    def test_defaults(self, detector):
        from plandet.vocabulary import DetectorState
        assert detector.get_nb_min_point() == 10
        assert detector.classifier_name == 'fern'
        assert detector.state is DetectorState.UNINITIALIZED
        assert detector.reference is None
        assert detector.result is None

    def test_unknown_classifier_raises(self):
        from plandet.detector import PlanarObjectDetector
        from plandet.exceptions import ValidationError
        with pytest.raises(ValidationError, match="Unknown classifier"):
            PlanarObjectDetector(classifier_name='forest')

    def test_classifier_params_for_other_classifier_raise(self):
        from plandet.detector import PlanarObjectDetector
        from plandet.exceptions import ValidationError
        with pytest.raises(ValidationError, match="num_views"):
            PlanarObjectDetector(classifier_name='descriptor', classifier_params={'num_views': 50})

    def test_out_of_range_classifier_params_raise(self):
        from plandet.detector import PlanarObjectDetector
        from plandet.exceptions import ValidationError
        with pytest.raises(ValidationError, match="fern_depth"):
            PlanarObjectDetector(classifier_params={'fern_depth': 40})

    def test_negative_threshold_raises(self):
        from plandet.detector import PlanarObjectDetector
        from plandet.exceptions import ValidationError
        with pytest.raises(ValidationError):
            PlanarObjectDetector(nb_min_point=-1)

    def test_set_nb_min_point(self, detector):
        detector.set_nb_min_point(25)
        assert detector.get_nb_min_point() == 25


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

class TestLifecycle:
    """Test state transitions and guarded operations."""

    def test_match_before_build_raises(self, detector, reference_image):
        from plandet.exceptions import ModelNotBuiltError
        with pytest.raises(ModelNotBuiltError):
            detector.match_point(reference_image)
        with pytest.raises(ModelNotBuiltError):
            detector.detect(reference_image)

    def test_getters_before_build(self, detector):
        assert detector.get_detected_corners() is None
        assert detector.get_homography() is None
        assert detector.get_correspondences() is None
        assert detector.get_classifier() is None
        assert detector.get_reference_points() is None
        assert detector.get_reference_corners() is None

    def test_build_makes_ready(self, built, reference_roi):
        from plandet.classifiers.fern import FernClassifier
        from plandet.vocabulary import DetectorState
        assert built.state is DetectorState.READY
        assert isinstance(built.get_classifier(), FernClassifier)
        assert built.get_classifier().num_ferns == 40
        assert built.get_classifier().num_views == 400
        np.testing.assert_array_equal(built.get_reference_corners(), reference_roi.corners())
        assert np.all(reference_roi.contains(built.get_reference_points()))
        assert built.reference.num_points == len(built.get_reference_points())

    def test_reference_points_read_only(self, built):
        with pytest.raises(ValueError):
            built.get_reference_points()[0, 0] = 0.0

    def test_accepted_match_then_rejected_match(self, built, query_scene, blank_image):
        from plandet.vocabulary import DetectorState
        query, _ = query_scene
        assert built.match_point(query) is True
        assert built.state is DetectorState.MATCHED
        assert built.get_homography() is not None

        assert built.match_point(blank_image) is False
        assert built.state is DetectorState.READY
        assert built.get_detected_corners() is None
        assert built.get_homography() is None
        ref, qry = built.get_correspondences()
        assert ref.shape == (0, 2) and qry.shape == (0, 2)
        assert built.result.metadata['reason'] == 'no correspondences'

    def test_rebuild_discards_match(self, built, query_scene, reference_image, reference_roi):
        from plandet.vocabulary import DetectorState
        query, _ = query_scene
        assert built.match_point(query)
        old_model = built.reference
        built.build_reference(reference_image, reference_roi)
        assert built.state is DetectorState.READY
        assert built.result is None
        assert built.reference is not old_model

    def test_empty_reference_region_keeps_nothing(self, detector, blank_image):
        from plandet.vocabulary import DetectorState
        assert detector.build_reference(blank_image) == 0
        assert detector.state is DetectorState.UNINITIALIZED

    def test_empty_reference_region_keeps_previous_model(self, built, query_scene, blank_image):
        from plandet.vocabulary import DetectorState
        query, _ = query_scene
        assert built.match_point(query)
        model, result = built.reference, built.result
        assert built.build_reference(blank_image) == 0
        assert built.reference is model
        assert built.result is result
        assert built.state is DetectorState.MATCHED

    def test_detect_does_not_change_state(self, built, query_scene):
        from plandet.vocabulary import DetectorState
        query, _ = query_scene
        result = built.detect(query)
        assert result.accepted
        assert built.state is DetectorState.READY
        assert built.result is None


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

class TestDetection:
    """Test detection accuracy and acceptance."""

    def test_corners_near_ground_truth(self, built, query_scene, expected_corners):
        query, _ = query_scene
        assert built.match_point(query)
        corners = built.get_detected_corners()
        assert corners.shape == (4, 2)
        errors = np.linalg.norm(corners - expected_corners, axis=1)
        assert np.all(errors < 5.0)

    @pytest.mark.parametrize('angle, scale', [(-20.0, 1.0), (0.0, 0.9), (20.0, 1.1)])
    def test_poses_within_trained_range(self, built, reference_image, reference_roi,
                                        angle, scale):
        from conftest import map_rc, query_transform, warp_to_query
        M = query_transform(angle, scale)
        assert built.match_point(warp_to_query(reference_image, M))
        truth = map_rc(reference_roi.corners(), M)
        errors = np.linalg.norm(built.get_detected_corners() - truth, axis=1)
        assert np.all(errors < 5.0)

    def test_accepted_match_is_never_misplaced(self, built, reference_image, reference_roi):
        from conftest import map_rc, query_transform, warp_to_query
        M = query_transform(90.0, 1.2)
        if built.match_point(warp_to_query(reference_image, M)):
            truth = map_rc(reference_roi.corners(), M)
            errors = np.linalg.norm(built.get_detected_corners() - truth, axis=1)
            assert np.all(errors < 5.0)

    def test_corners_follow_homography(self, built, query_scene):
        from plandet.geometry.transforms import apply_transform_to_points
        query, _ = query_scene
        assert built.match_point(query)
        H = built.get_homography()
        np.testing.assert_allclose(
            apply_transform_to_points(built.get_reference_corners(), H),
            built.get_detected_corners(),
            atol=1e-9,
        )

    def test_returned_arrays_are_copies(self, built, query_scene):
        query, _ = query_scene
        assert built.match_point(query)
        corners = built.get_detected_corners()
        corners[:] = 0.0
        assert np.any(built.get_detected_corners() != 0.0)

    def test_correspondences_consistent(self, built, query_scene):
        query, _ = query_scene
        assert built.match_point(query)
        ref, qry = built.get_correspondences()
        assert ref.shape == qry.shape
        assert len(ref) >= built.result.num_inliers
        # Each reference point is paired at most once.
        assert len(np.unique(ref, axis=0)) == len(ref)

    def test_acceptance_is_inlier_threshold(self, built, query_scene):
        query, _ = query_scene
        assert built.match_point(query)
        inliers = built.result.num_inliers
        built.set_nb_min_point(inliers)
        assert built.match_point(query)
        built.set_nb_min_point(inliers + 1)
        assert not built.match_point(query)
        assert built.result.num_inliers == inliers
        assert built.get_detected_corners() is None

    def test_occlusion_reduces_inliers(self, built, query_scene, expected_corners):
        from plandet.geometry.roi import bounding_rectangle
        query, _ = query_scene
        box = bounding_rectangle(expected_corners)
        assert built.match_point(query, box)
        baseline = built.result.num_correspondences

        # Blank the central 80% of the object's bounding box.
        side = np.sqrt(0.8)
        r0 = int(round(box.top + box.height * (1 - side) / 2))
        c0 = int(round(box.left + box.width * (1 - side) / 2))
        r1 = int(round(r0 + box.height * side))
        c1 = int(round(c0 + box.width * side))
        occluded = query.copy()
        occluded[r0:r1, c0:c1] = BACKGROUND

        assert built.get_nb_min_point() == 10
        assert built.match_point(occluded, box) is False
        assert built.result.num_correspondences < 0.4 * baseline
        assert built.result.num_inliers < 10
        assert built.get_detected_corners() is None

    def test_blank_query_not_detected(self, built, blank_image):
        assert built.match_point(blank_image) is False

    @pytest.mark.parametrize('num_points', [3, 6])
    def test_degenerate_correspondences_rejected(self, built, query_scene, monkeypatch, num_points):
        from plandet import detector as detector_module
        from plandet.matching import CorrespondenceSet
        query, _ = query_scene
        line = np.column_stack([np.linspace(20, 80, num_points), np.full(num_points, 40.0)])
        monkeypatch.setattr(
            detector_module, 'match_points',
            lambda *args: CorrespondenceSet.from_points(line, line + 5.0),
        )
        built.set_nb_min_point(0)
        assert built.match_point(query) is False
        assert built.result.num_correspondences == num_points
        assert built.result.homography is None


# ---------------------------------------------------------------------------
# Regions
# ---------------------------------------------------------------------------

class TestRegions:
    """Test explicit and sticky query regions."""

    def test_origin_and_size_form(self, detector, reference_image, reference_roi):
        n_rect = detector.build_reference(reference_image, reference_roi)
        n_origin = detector.build_reference(reference_image, (10, 10), height=100, width=100)
        assert n_rect == n_origin
        assert detector.reference.roi == reference_roi

    def test_region_outside_image_raises(self, detector, reference_image):
        from plandet.exceptions import InvalidRegionError
        from plandet.geometry.roi import Rectangle
        with pytest.raises(InvalidRegionError):
            detector.build_reference(reference_image, Rectangle(200, 200, 100, 100))

    def test_explicit_query_region(self, built, query_scene, expected_corners):
        from plandet.geometry.roi import bounding_rectangle
        query, _ = query_scene
        assert built.match_point(query, bounding_rectangle(expected_corners))

    def test_sticky_roi(self, built, query_scene):
        query, _ = query_scene
        built.set_roi((0, 0), (20, 20))
        assert built.roi is not None
        assert built.match_point(query) is False
        assert built.match_point(query) is False
        built.clear_roi()
        assert built.roi is None
        assert built.match_point(query)

    def test_inverted_roi_raises(self, built):
        from plandet.exceptions import InvalidRegionError
        with pytest.raises(InvalidRegionError):
            built.set_roi((50, 50), (10, 10))

    def test_roi_outside_query_raises(self, built, query_scene):
        from plandet.exceptions import InvalidRegionError
        query, _ = query_scene
        built.set_roi((100, 100), (400, 400))
        with pytest.raises(InvalidRegionError):
            built.match_point(query)


# ---------------------------------------------------------------------------
# Rectification
# ---------------------------------------------------------------------------

class TestRectify:
    """Test warping the query back into the reference frame."""

    def test_none_unless_matched(self, built, query_scene):
        query, _ = query_scene
        assert built.rectify(query) is None

    def test_rectified_board_matches_reference(self, built, query_scene, reference_image):
        query, _ = query_scene
        assert built.match_point(query)
        rectified = built.rectify(query)
        assert rectified.shape == reference_image.shape
        diff = np.abs(
            rectified[20:100, 20:100].astype(np.float64)
            - reference_image[20:100, 20:100].astype(np.float64)
        )
        assert np.median(diff) < 10.0

    def test_output_shape(self, built, query_scene):
        query, _ = query_scene
        assert built.match_point(query)
        assert built.rectify(query, output_shape=(120, 120)).shape == (120, 120)


# ---------------------------------------------------------------------------
# Descriptor classifier
# ---------------------------------------------------------------------------

class TestDescriptorDetector:
    """Test the detector with descriptor matching instead of ferns."""

    def test_translated_query(self, reference_image, reference_roi):
        from plandet.detector import PlanarObjectDetector
        shift = np.array([30.0, 40.0])
        M = np.array([[1.0, 0.0, shift[1]], [0.0, 1.0, shift[0]]])
        query = cv2.warpAffine(
            reference_image, M, (SCENE_SHAPE[1], SCENE_SHAPE[0]), borderValue=BACKGROUND,
        )
        detector = PlanarObjectDetector(classifier_name='descriptor')
        assert detector.build_reference(reference_image, reference_roi) > 0
        assert detector.match_point(query)
        np.testing.assert_allclose(
            detector.get_detected_corners(), reference_roi.corners() + shift, atol=1.0,
        )
