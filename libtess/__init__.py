from libtess.ds.coord import Co2, Co3
from libtess.errors import TessellationError
from libtess.tess import (
	ContourOrientation,
	ContourVertex,
	ElementType,
	Tesselator,
	WindingRule,
)
from libtess.triangulate import triangle_area_sum, triangulate

__all__ = [
	'Co2',
	'Co3',
	'ContourOrientation',
	'ContourVertex',
	'ElementType',
	'Tesselator',
	'TessellationError',
	'WindingRule',
	'triangle_area_sum',
	'triangulate',
]
