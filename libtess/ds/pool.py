from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Generic, TypeVar

T = TypeVar('T')


class Pool(Generic[T]):
	'''
	Free-list allocator for mesh elements and sweep regions.

	Every instance the pool constructs is kept in `total_created` and gets
	a stable `pool_index`, so `reset()` can break the reference cycles of
	all of them at once, whether or not they were handed back.

	Pooled types need a no-argument constructor and a `reset()` method
	that restores their default state.
	'''
	__slots__ = '_factory', '_free', 'total_created'

	def __init__ (self, factory: Callable[[], T]):
		self._factory = factory
		self._free = list[T]()
		self.total_created = list[T]()

	def pull (self) -> T:
		if not self._free:
			v = self._factory()
			v.pool_index = len(self.total_created)
			self.total_created.append(v)
			return v
		v = self._free.pop()
		v.reset()
		return v

	def repool (self, v: T):
		self._free.append(v)

	@contextmanager
	def temporary (self) -> Iterator[T]:
		'''
		Lends out an instance for the duration of a `with` block.
		Repooling it inside the block is an error.
		'''
		v = self.pull()
		try:
			yield v
		finally:
			self.repool(v)

	def reset (self):
		for v in self.total_created:
			v.reset()
		self._free.clear()
		self.total_created.clear()

	@property
	def live_count (self) -> int:
		return len(self.total_created) - len(self._free)

	def __len__ (self):
		return len(self.total_created)
