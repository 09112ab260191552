class TessellationError(Exception):
	'''
	Raised when a tessellation cannot complete. Nothing written by the
	failed call (`vertices`, `elements`, ...) should be read afterwards.
	'''
