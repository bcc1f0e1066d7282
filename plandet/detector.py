# -*- coding: utf-8 -*-
"""
Planar Object Detector - Reference building, matching, and detection results.

Provides ``PlanarObjectDetector``, the facade that builds a reference model
of a flat object from a region of a reference image and then decides, for
each query image, whether the object is visible. When it is, the detector
exposes the homography mapping reference coordinates to query coordinates
and the four reprojected corners of the reference region.

Lifecycle::

    UNINITIALIZED --build_reference / load--> READY
    READY --match_point (accepted)--> MATCHED
    MATCHED --match_point / build_reference / load--> READY or MATCHED

``build_reference`` and ``load`` replace the ``ReferenceModel`` wholesale
and discard any previous match result. Every ``match_point`` call first
discards the previous result; homography and corners are only exposed
while the most recent match was accepted.

Failures to detect the object (no correspondences, degenerate geometry,
too few inliers) are ordinary ``False`` results. Only programming errors
(bad regions, matching without a model, unreadable model files) raise.

Dependencies
------------
opencv-python-headless
scipy
h5py

Author
------
Duane Smalley, PhD
duane.d.smalley@gmail.com

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

# Standard library
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any, Dict, List, Optional, Sequence, Tuple, Union

# Third-party
import numpy as np

# plandet internal
from plandet.base import TunableComponent
from plandet.classifiers.base import PointClassifier, create_classifier
from plandet.config import load_config
from plandet.exceptions import InsufficientGeometryError, ModelNotBuiltError, ValidationError
from plandet.features.keypoints import InterestPointDetector
from plandet.geometry.roi import Rectangle, Region, resolve_region
from plandet.geometry.transforms import warp_image
from plandet.homography import DetectionResult, RansacHomographyEstimator
from plandet.IO import hdf5
from plandet.matching import match_points
from plandet.params import Desc, Range
from plandet.versioning import component_version
from plandet.vocabulary import ClassifierMethod, DetectorState

logger = logging.getLogger(__name__)


def _frozen(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=np.float64)
    array.flags.writeable = False
    return array


@dataclass(frozen=True, eq=False)
class ReferenceModel:
    """Trained model of one planar object.

    Replaced as a whole by ``build_reference`` and ``load``, never
    modified in place. Point arrays are stored as read-only copies.

    Parameters
    ----------
    classifier : PointClassifier
        Classifier trained with one class per reference point.
    reference_points : np.ndarray
        (K, 2) (row, col) interest points of the reference region.
    corners : np.ndarray
        (4, 2) corners of the reference region in top-left, top-right,
        bottom-right, bottom-left order.
    roi : Rectangle
        Reference region.
    image_shape : Tuple[int, ...]
        (rows, cols) of the reference image.
    """

    classifier: PointClassifier
    reference_points: np.ndarray
    corners: np.ndarray
    roi: Rectangle
    image_shape: Tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, 'reference_points', _frozen(self.reference_points))
        object.__setattr__(self, 'corners', _frozen(self.corners))
        object.__setattr__(self, 'image_shape', tuple(int(v) for v in self.image_shape[:2]))

    @property
    def num_points(self) -> int:
        return int(self.reference_points.shape[0])


@component_version('1.0.0')
class PlanarObjectDetector(TunableComponent):
    """Detect a trained planar object in query images.

    Parameters
    ----------
    nb_min_point : int
        Minimum number of homography inliers for an accepted match.
        Default 10.
    classifier_name : str
        Registered point classifier trained by ``build_reference``.
        Default ``'fern'``.
    classifier_params : dict, optional
        Parameters for the classifier constructor.
    keypoints : InterestPointDetector, optional
        Interest point detector for reference and query regions.
    estimator : RansacHomographyEstimator, optional
        Robust homography estimator.

    Examples
    --------
    >>> detector = PlanarObjectDetector()
    >>> detector.build_reference(reference, Rectangle(10, 10, 100, 100))
    112
    >>> if detector.match_point(frame):
    ...     corners = detector.get_detected_corners()
    """

    nb_min_point: Annotated[int, Range(min=0), Desc('Minimum inliers to accept a match')] = 10
    classifier_name: Annotated[str, Desc('Registered point classifier')] = (
        ClassifierMethod.FERN.value
    )

    def __init__(
        self,
        nb_min_point: int = 10,
        classifier_name: str = ClassifierMethod.FERN.value,
        classifier_params: Optional[Dict[str, Any]] = None,
        keypoints: Optional[InterestPointDetector] = None,
        estimator: Optional[RansacHomographyEstimator] = None,
    ) -> None:
        self.set_param('nb_min_point', nb_min_point)
        self.set_param('classifier_name', classifier_name)
        self.classifier_params = dict(classifier_params or {})
        try:
            create_classifier(classifier_name, **self.classifier_params)
        except TypeError as exc:
            raise ValidationError(
                f"classifier_params do not fit classifier '{classifier_name}': {exc}"
            ) from exc
        self.keypoints = keypoints if keypoints is not None else InterestPointDetector()
        self.estimator = estimator if estimator is not None else RansacHomographyEstimator()

        self._model: Optional[ReferenceModel] = None
        self._result: Optional[DetectionResult] = None
        self._roi: Optional[Rectangle] = None

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_config(cls, path: Optional[Union[str, Path]] = None) -> 'PlanarObjectDetector':
        """Build a detector from a YAML configuration file.

        Parameters
        ----------
        path : str or Path, optional
            Configuration file; the packaged default when omitted.
        """
        config = load_config(path)
        detector_cfg = dict(config['detector'])
        if 'classifier' in detector_cfg:
            detector_cfg['classifier_name'] = detector_cfg.pop('classifier')
        return cls(
            classifier_params=config['classifier'],
            keypoints=InterestPointDetector(**config['keypoints']),
            estimator=RansacHomographyEstimator(**config['estimator']),
            **detector_cfg,
        )

    @classmethod
    def from_file(
        cls,
        filepath: Union[str, Path],
        object_name: str,
        **params: Any,
    ) -> 'PlanarObjectDetector':
        """Create a detector and load a recorded model into it.

        Parameters
        ----------
        filepath : str or Path
            Model file written by ``record_detector``.
        object_name : str
            Name the model was recorded under.
        **params
            Constructor parameters.
        """
        detector = cls(**params)
        detector.load(filepath, object_name)
        return detector

    @staticmethod
    def list_models(filepath: Union[str, Path]) -> List[str]:
        """Object names recorded in a model file."""
        return hdf5.list_models(filepath)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> DetectorState:
        if self._model is None:
            return DetectorState.UNINITIALIZED
        if self._result is not None and self._result.accepted:
            return DetectorState.MATCHED
        return DetectorState.READY

    @property
    def reference(self) -> Optional[ReferenceModel]:
        """Current reference model, or None."""
        return self._model

    @property
    def result(self) -> Optional[DetectionResult]:
        """Result of the most recent ``match_point`` call, accepted or not."""
        return self._result

    def _require_model(self) -> ReferenceModel:
        if self._model is None:
            raise ModelNotBuiltError(
                "No reference model. Call build_reference() or load() first."
            )
        return self._model

    # ------------------------------------------------------------------
    # Reference building
    # ------------------------------------------------------------------

    def build_reference(
        self,
        image: np.ndarray,
        region: Optional[Region] = None,
        height: Optional[float] = None,
        width: Optional[float] = None,
    ) -> int:
        """Train a new reference model from a region of *image*.

        Region forms: none (whole image), a ``Rectangle``, a
        ``Quadrilateral`` or (4, 2) corner array (its bounding rectangle),
        or a (row, col) origin together with ``height`` and ``width``.

        Parameters
        ----------
        image : np.ndarray
            Reference image.
        region : Rectangle, Quadrilateral, np.ndarray or (row, col), optional
            Reference region.
        height, width : float, optional
            Region size, only with an origin.

        Returns
        -------
        int
            Number of reference points in the new model. 0 when no
            interest point was found; the previous model, if any, is then
            kept unchanged.

        Raises
        ------
        InvalidRegionError
            If the region is malformed or exits the image.
        """
        image = np.asarray(image)
        rect = resolve_region(image.shape, region, height, width)
        points = self.keypoints.detect(image, rect)
        if len(points) == 0:
            logger.warning("No interest points in reference region %r; model unchanged", rect)
            return 0

        classifier = create_classifier(self.classifier_name, **self.classifier_params)
        classifier.train(image, points)

        self._model = ReferenceModel(
            classifier=classifier,
            reference_points=points,
            corners=rect.corners(),
            roi=rect,
            image_shape=image.shape,
        )
        self._result = None
        logger.info(
            "Built reference model from %d points in %r (%s)",
            len(points), rect, type(classifier).__name__,
        )
        return len(points)

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def detect(
        self,
        image: np.ndarray,
        region: Optional[Region] = None,
        height: Optional[float] = None,
        width: Optional[float] = None,
    ) -> DetectionResult:
        """Run the full match pipeline without changing detector state.

        When no region is given, the region set by ``set_roi`` is used, or
        the whole image when none is set.

        Returns
        -------
        DetectionResult

        Raises
        ------
        ModelNotBuiltError
            If no reference model exists.
        InvalidRegionError
            If the region is malformed or exits the image.
        """
        model = self._require_model()
        image = np.asarray(image)
        if region is None and height is None and width is None:
            region = self._roi
        rect = resolve_region(image.shape, region, height, width)

        correspondences = match_points(
            image, rect, self.keypoints, model.classifier, model.reference_points,
        )
        if len(correspondences) == 0:
            return DetectionResult.rejected(correspondences, 'no correspondences')

        try:
            return self.estimator.estimate(correspondences, model.corners, self.nb_min_point)
        except InsufficientGeometryError as exc:
            logger.debug("Not detected: %s", exc)
            return DetectionResult.rejected(correspondences, str(exc))

    def match_point(
        self,
        image: np.ndarray,
        region: Optional[Region] = None,
        height: Optional[float] = None,
        width: Optional[float] = None,
    ) -> bool:
        """Look for the reference object in *image*.

        Accepts the same region forms as ``build_reference``. The previous
        match result is discarded before anything else happens.

        Returns
        -------
        bool
            True when a homography with at least ``nb_min_point`` inliers
            was found.

        Raises
        ------
        ModelNotBuiltError
            If no reference model exists.
        InvalidRegionError
            If the region is malformed or exits the image.
        """
        self._require_model()
        self._result = None
        self._result = self.detect(image, region, height, width)
        logger.debug("match_point: %r", self._result)
        return self._result.accepted

    # ------------------------------------------------------------------
    # Query surface
    # ------------------------------------------------------------------

    def get_detected_corners(self) -> Optional[np.ndarray]:
        """(4, 2) detected corners, TL, TR, BR, BL; None unless matched."""
        if self.state is not DetectorState.MATCHED:
            return None
        return self._result.corners.copy()

    def get_homography(self) -> Optional[np.ndarray]:
        """(3, 3) reference -> query homography; None unless matched."""
        if self.state is not DetectorState.MATCHED:
            return None
        return self._result.homography.copy()

    def get_correspondences(self) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        """Reference and query points of the last match, for display.

        Returns
        -------
        Tuple[np.ndarray, np.ndarray] or None
            ``(reference_points, query_points)`` each (N, 2), or None
            before any match.
        """
        if self._result is None:
            return None
        c = self._result.correspondences
        return c.reference_points.copy(), c.query_points.copy()

    def get_nb_min_point(self) -> int:
        return self.nb_min_point

    def set_nb_min_point(self, nb_min_point: int) -> None:
        """Set the inlier threshold applied to subsequent matches."""
        self.set_param('nb_min_point', nb_min_point)

    def set_roi(
        self,
        top_left: Sequence[float],
        bottom_right: Sequence[float],
    ) -> None:
        """Restrict subsequent matches without an explicit region.

        The region stays in effect until ``clear_roi`` is called.

        Raises
        ------
        InvalidRegionError
            If bottom-right lies above or left of top-left.
        """
        self._roi = Rectangle.from_corners(top_left, bottom_right)

    def clear_roi(self) -> None:
        self._roi = None

    @property
    def roi(self) -> Optional[Rectangle]:
        return self._roi

    def get_classifier(self) -> Optional[PointClassifier]:
        return self._model.classifier if self._model is not None else None

    def get_reference_points(self) -> Optional[np.ndarray]:
        return self._model.reference_points if self._model is not None else None

    def get_reference_corners(self) -> Optional[np.ndarray]:
        return self._model.corners if self._model is not None else None

    def rectify(
        self,
        image: np.ndarray,
        output_shape: Optional[Tuple[int, int]] = None,
    ) -> Optional[np.ndarray]:
        """Warp a query image into the reference frame.

        Uses the homography of the current accepted match, so pixel
        ``(r, c)`` of the result shows what the query image holds at the
        reference location ``(r, c)``.

        Parameters
        ----------
        image : np.ndarray
            Query image the match was made on.
        output_shape : Tuple[int, int], optional
            Output (rows, cols). Defaults to the reference image shape.

        Returns
        -------
        np.ndarray or None
            Rectified image, or None unless matched.
        """
        if self.state is not DetectorState.MATCHED:
            return None
        if output_shape is None:
            output_shape = self._model.image_shape
        query_to_reference = np.linalg.inv(self._result.homography)
        return warp_image(np.asarray(image), query_to_reference, output_shape=output_shape)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def record_detector(self, object_name: str, filepath: Union[str, Path]) -> None:
        """Save the reference model under *object_name* in *filepath*.

        Raises
        ------
        ModelNotBuiltError
            If no reference model exists.
        PersistenceError
            If the file cannot be written.
        """
        model = self._require_model()
        hdf5.write_model(
            filepath, object_name, model.classifier,
            model.reference_points, model.corners, model.roi, model.image_shape,
        )

    def load(self, filepath: Union[str, Path], object_name: str) -> None:
        """Replace the reference model with one recorded earlier.

        Discards any match result. On failure the current model and result
        are unchanged.

        Raises
        ------
        PersistenceError
            If the file or record is missing, malformed, or incompatible.
        """
        fields = hdf5.read_model(filepath, object_name)
        self._model = ReferenceModel(**fields)
        self._result = None
        self.classifier_name = type(self._model.classifier).name
        self.classifier_params = dict(self._model.classifier.get_params())
