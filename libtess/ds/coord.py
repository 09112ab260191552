import math
from collections.abc import Iterable, Iterator
from typing import Self


def _unpack (args, n: int) -> tuple[float, ...]:
	if len(args) == 1 and isinstance(args[0], Iterable):
		args = tuple(args[0])
	if len(args) == 0:
		return (0.0,) * n
	if len(args) != n:
		raise ValueError(f'expected {n} components, got {len(args)}')
	return tuple(float(a) for a in args)


class Co2:
	'''
	A mutable 2D coordinate. Inside the tessellator `x` is the sweep
	coordinate `s` and `y` is `t`; comparison operators implement the
	sweep order (by `x`, then by `y`).
	'''
	__slots__ = 'x', 'y'
	ZERO: 'Co2'

	def __init__ (self, *args):
		self.x, self.y = _unpack(args, 2)

	@property
	def xy (self) -> tuple[float, float]:
		return self.x, self.y

	@xy.setter
	def xy (self, v):
		self.x, self.y = v

	@property
	def yx (self) -> Self:
		'Transposed copy, compares in (t, s) order'
		return Co2(self.y, self.x)

	def copy (self) -> Self:
		return Co2(self.x, self.y)

	def dist_l1 (self, other: Self) -> float:
		return abs(self.x - other.x) + abs(self.y - other.y)

	def __iter__ (self) -> Iterator[float]:
		yield self.x
		yield self.y

	def __len__ (self):
		return 2

	def __getitem__ (self, i: int) -> float:
		return (self.x, self.y)[i]

	def __setitem__ (self, i: int, v: float):
		if i == 0:
			self.x = v
		elif i == 1:
			self.y = v
		else:
			raise IndexError(i)

	def __eq__ (self, other):
		if not isinstance(other, Co2):
			return NotImplemented
		return self.x == other.x and self.y == other.y

	def __le__ (self, other: Self) -> bool:
		return (self.x < other.x) or (self.x == other.x and self.y <= other.y)

	def __gt__ (self, other: Self) -> bool:
		return not self <= other

	def __ge__ (self, other: Self) -> bool:
		return other <= self

	def __lt__ (self, other: Self) -> bool:
		return not other <= self

	__hash__ = None

	def __repr__ (self):
		return f'Co2({self.x!r}, {self.y!r})'


class Co3:
	__slots__ = 'x', 'y', 'z'
	ZERO: 'Co3'

	def __init__ (self, *args):
		self.x, self.y, self.z = _unpack(args, 3)

	@property
	def xyz (self) -> tuple[float, float, float]:
		return self.x, self.y, self.z

	@xyz.setter
	def xyz (self, v):
		if isinstance(v, (int, float)):
			self.x = self.y = self.z = float(v)
		else:
			self.x, self.y, self.z = v

	def copy (self) -> Self:
		return Co3(self.x, self.y, self.z)

	def dot (self, other: Self) -> float:
		return self.x * other.x + self.y * other.y + self.z * other.z

	def cross (self, other: Self) -> Self:
		return Co3(
			self.y * other.z - self.z * other.y,
			self.z * other.x - self.x * other.z,
			self.x * other.y - self.y * other.x,
		)

	def length_squared (self) -> float:
		return self.dot(self)

	def length (self) -> float:
		return math.sqrt(self.length_squared())

	def normalize (self) -> Self:
		ln = self.length()
		assert ln > 0
		self.x /= ln
		self.y /= ln
		self.z /= ln
		return self

	def __iter__ (self) -> Iterator[float]:
		yield self.x
		yield self.y
		yield self.z

	def __len__ (self):
		return 3

	def __getitem__ (self, i):
		if isinstance(i, tuple):
			return tuple(self[k] for k in i)
		return (self.x, self.y, self.z)[i]

	def __setitem__ (self, i, v):
		if isinstance(i, tuple):
			for k, kv in zip(i, v, strict=True):
				self[k] = kv
			return
		if i == 0:
			self.x = v
		elif i == 1:
			self.y = v
		elif i == 2:
			self.z = v
		else:
			raise IndexError(i)

	def __add__ (self, other: Self) -> Self:
		return Co3(self.x + other.x, self.y + other.y, self.z + other.z)

	def __sub__ (self, other: Self) -> Self:
		return Co3(self.x - other.x, self.y - other.y, self.z - other.z)

	def __mul__ (self, k: float) -> Self:
		return Co3(self.x * k, self.y * k, self.z * k)

	__rmul__ = __mul__

	def __eq__ (self, other):
		if not isinstance(other, Co3):
			return NotImplemented
		return self.xyz == other.xyz

	__hash__ = None

	def __repr__ (self):
		return f'Co3({self.x!r}, {self.y!r}, {self.z!r})'


Co2.ZERO = Co2()
Co3.ZERO = Co3()
