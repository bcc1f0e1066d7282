# -*- coding: utf-8 -*-
"""
IO Module - Persistence of trained reference models.

Key Functions
-------------
- write_model: Store a reference model under an object name
- read_model: Restore a stored reference model
- list_models: Object names stored in a model file

Dependencies
------------
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

from plandet.IO.hdf5 import list_models, read_model, write_model

__all__ = [
    'list_models',
    'read_model',
    'write_model',
]
