'''
Defaults and numeric constants shared by the mesh, the sweep and the
output stage.
'''

UNDEF = -1
'Index used for "no vertex" / "no face" in element output and for vertices without an input index'

DEFAULT_POLY_SIZE = 3

SENTINEL_MARGIN = 0.01
'Extra room added on each side of the (s, t) bounds when placing the sweep sentinels'

# The event budget is quadratic rather than linear in the vertex count:
# every pair of edges may cross once, and each crossing adds an event.
SWEEP_SLACK = 8
'Added to the initial vertex count before squaring it into the sweep event budget'

PQ_EXTRA_VERTS = 8

S_UNIT_FLAT    = (1.0, 0.0)
S_UNIT_SLANTED = (0.50941539564955385, 0.86052074622010633)
