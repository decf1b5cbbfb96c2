"""
Satellite Globe Service

This package loads three-line element sets, derives satellite positions with
the sgp4 library and serves them as point features and ground tracks to a
3D globe client.

Modules:
    element_sets: 3-line element text parsing
    designator: International designator decoding
    propagation: SGP4 binding and position derivation
    track: 24-hour ground track sampling
    layers: In-memory feature and track layers
    filter_controller: Threshold control filtering
    fetch: Element text loading and caching
    session: Session state and load pipeline
    app: Flask web service

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

__version__ = "1.0.0"
