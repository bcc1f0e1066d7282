# -*- coding: utf-8 -*-
"""
Configuration - YAML configuration of the detection pipeline.

Reads a YAML file whose optional top-level sections configure the parts
of a ``PlanarObjectDetector``:

- ``detector``: facade parameters (``nb_min_point``, ``classifier``)
- ``keypoints``: ``InterestPointDetector`` parameters
- ``classifier``: parameters of the selected point classifier
- ``estimator``: ``RansacHomographyEstimator`` parameters

Parameter values are validated by the components themselves when they
are constructed. A default configuration ships as ``plandet/config.yaml``.

Dependencies
------------
pyyaml

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
from pathlib import Path
from typing import Any, Dict, Optional, Union

# Third-party
import yaml

# plandet internal
from plandet.exceptions import ValidationError

logger = logging.getLogger(__name__)

#: Configuration shipped with the package.
DEFAULT_CONFIG_PATH = Path(__file__).parent / 'config.yaml'

#: Recognized top-level sections.
SECTIONS = ('detector', 'keypoints', 'classifier', 'estimator')


def parse_config(data: Optional[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Validate the section layout of a configuration mapping.

    Parameters
    ----------
    data : dict or None
        Parsed YAML document. ``None`` (an empty file) is an empty config.

    Returns
    -------
    Dict[str, Dict[str, Any]]
        Every section of ``SECTIONS``; missing sections are empty dicts.

    Raises
    ------
    ValidationError
        If the document is not a mapping, names an unknown section, or a
        section is not a mapping.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError(
            f"Configuration must be a mapping of sections, got {type(data).__name__}"
        )

    unknown = sorted(set(data) - set(SECTIONS))
    if unknown:
        raise ValidationError(
            f"Unknown configuration sections: {unknown}. Allowed: {list(SECTIONS)}"
        )

    config: Dict[str, Dict[str, Any]] = {}
    for section in SECTIONS:
        values = data.get(section) or {}
        if not isinstance(values, dict):
            raise ValidationError(
                f"Configuration section '{section}' must be a mapping, "
                f"got {type(values).__name__}"
            )
        config[section] = dict(values)
    return config


def load_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Dict[str, Any]]:
    """Load a YAML configuration file.

    Parameters
    ----------
    path : str or Path, optional
        Configuration file. Defaults to ``DEFAULT_CONFIG_PATH``.

    Returns
    -------
    Dict[str, Dict[str, Any]]
        ``{section: {parameter: value}}`` for every section.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValidationError
        If the file is not valid YAML or has an invalid layout.

    Examples
    --------
    >>> cfg = load_config()
    >>> cfg['detector']['nb_min_point']
    10
    """
    path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ValidationError(f"Invalid YAML in {path}: {exc}") from exc

    config = parse_config(data)
    logger.debug("Loaded configuration from %s", path)
    return config
