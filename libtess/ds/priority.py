from collections.abc import Callable
from typing import Generic, TypeVar

from libtess.errors import TessellationError

T = TypeVar('T')

Leq = Callable[[T, T], bool]


class PriorityHeap(Generic[T]):
	'''
	Binary min-heap addressed through stable handles.

	`_nodes[i]` is the handle stored at heap position `i` (1-based),
	`_keys[h]` is the item for handle `h` and `_locs[h]` its heap position.
	Freed handles are chained through `_locs` starting at `_free`.
	'''

	def __init__ (self, size: int = 32, leq: Leq = None):
		self.leq = leq
		size = max(size, 1)
		self._nodes = [0] * (size + 2)
		self._keys: list[T] = [None] * (size + 2)
		self._locs = [0] * (size + 2)
		self._size = 0
		self._free = 0
		self._initialized = False

		self._nodes[1] = 1

	@property
	def is_empty (self) -> bool:
		return self._size == 0

	def __len__ (self):
		return self._size

	def _grow (self, n: int):
		if n < len(self._nodes):
			return
		extra = len(self._nodes)
		self._nodes.extend([0] * extra)
		self._keys.extend([None] * extra)
		self._locs.extend([0] * extra)

	def _float_down (self, curr: int):
		nodes, keys, locs = self._nodes, self._keys, self._locs
		h_curr = nodes[curr]
		while True:
			child = curr << 1
			if child < self._size and self.leq(keys[nodes[child + 1]], keys[nodes[child]]):
				child += 1

			if child > self._size or self.leq(keys[h_curr], keys[nodes[child]]):
				nodes[curr] = h_curr
				locs[h_curr] = curr
				break

			h_child = nodes[child]
			nodes[curr] = h_child
			locs[h_child] = curr
			curr = child

	def _float_up (self, curr: int):
		nodes, keys, locs = self._nodes, self._keys, self._locs
		h_curr = nodes[curr]
		while True:
			parent = curr >> 1
			h_parent = nodes[parent]
			if parent == 0 or self.leq(keys[h_parent], keys[h_curr]):
				nodes[curr] = h_curr
				locs[h_curr] = curr
				break
			nodes[curr] = h_parent
			locs[h_parent] = curr
			curr = parent

	def init (self):
		for i in range(self._size, 0, -1):
			self._float_down(i)
		self._initialized = True

	def insert (self, item: T) -> int:
		self._size += 1
		curr = self._size
		self._grow(curr + 1)

		if self._free == 0:
			free = curr
		else:
			free = self._free
			self._free = self._locs[free]

		self._nodes[curr] = free
		self._locs[free] = curr
		self._keys[free] = item

		if self._initialized:
			self._float_up(curr)
		return free

	def extract_min (self) -> T | None:
		assert self._initialized
		h_min = self._nodes[1]
		item = self._keys[h_min]

		if self._size > 0:
			self._nodes[1] = self._nodes[self._size]
			self._locs[self._nodes[1]] = 1

			self._keys[h_min] = None
			self._locs[h_min] = self._free
			self._free = h_min

			self._size -= 1
			if self._size > 0:
				self._float_down(1)
		return item

	def min (self) -> T | None:
		assert self._initialized
		return self._keys[self._nodes[1]]

	def remove (self, handle: int):
		assert self._initialized
		if not (1 <= handle < len(self._keys)) or self._keys[handle] is None:
			raise TessellationError(f'invalid heap handle {handle}')

		nodes, keys = self._nodes, self._keys
		curr = self._locs[handle]
		nodes[curr] = nodes[self._size]
		self._locs[nodes[curr]] = curr

		self._size -= 1
		if curr <= self._size:
			if curr <= 1 or self.leq(keys[nodes[curr >> 1]], keys[nodes[curr]]):
				self._float_down(curr)
			else:
				self._float_up(curr)

		keys[handle] = None
		self._locs[handle] = self._free
		self._free = handle

	__delitem__ = remove


class Priority(Generic[T]):
	'''
	Event queue for the sweep.

	Items inserted before `init()` go into a flat buffer and get negative
	handles; `init()` sorts them once. Items inserted afterwards go into a
	`PriorityHeap`. `extract_min()` and `min()` merge the two.
	'''

	_SORT_CUTOFF = 10
	_SEED = 2016473283

	def __init__ (self, size: int = 32, cmp: Leq = None):
		self.leq = cmp
		self.heap = PriorityHeap[T](size, cmp)
		self._keys = list[T]()
		self._order = list[int]()
		self._size = 0
		self._initialized = False

	@property
	def is_empty (self) -> bool:
		return self._size == 0 and self.heap.is_empty

	def _last_key (self) -> T | None:
		return self._keys[self._order[self._size - 1]]

	def init (self):
		'''
		Sorts the buffered items into decreasing order so the minimum sits
		at the tail. Quicksort on a random pivot with an explicit stack,
		finishing small partitions with insertion sort.
		'''
		leq = self.leq
		keys = self._keys
		order = self._order = list(range(self._size))
		seed = self._SEED

		stack = [(0, self._size - 1)]
		while stack:
			p, r = stack.pop()
			while r > p + self._SORT_CUTOFF:
				seed = (seed * 1539415821 + 1) & 0xffffffff
				i = p + seed % (r - p + 1)
				piv = order[i]
				order[i], order[p] = order[p], piv

				i = p - 1
				j = r + 1
				while True:
					i += 1
					while not leq(keys[order[i]], keys[piv]):
						i += 1
					j -= 1
					while not leq(keys[piv], keys[order[j]]):
						j -= 1
					order[i], order[j] = order[j], order[i]
					if i >= j:
						break
				# undo the last swap
				order[i], order[j] = order[j], order[i]

				if i - p < r - j:
					stack.append((j + 1, r))
					r = i - 1
				else:
					stack.append((p, i - 1))
					p = j + 1

			for i in range(p + 1, r + 1):
				piv = order[i]
				j = i
				while j > p and not leq(keys[piv], keys[order[j - 1]]):
					order[j] = order[j - 1]
					j -= 1
				order[j] = piv

		if __debug__:
			for i in range(self._size - 1):
				assert leq(keys[order[i + 1]], keys[order[i]]), 'wrong sort'

		self._initialized = True
		self.heap.init()

	def insert (self, item: T) -> int:
		if self._initialized:
			return self.heap.insert(item)

		curr = self._size
		self._size += 1
		self._keys.append(item)
		return -(curr + 1)

	def extract_min (self) -> T | None:
		assert self._initialized
		if self._size == 0:
			return self.heap.extract_min()

		sort_min = self._last_key()
		if not self.heap.is_empty:
			heap_min = self.heap.min()
			if self.leq(heap_min, sort_min):
				return self.heap.extract_min()

		while True:
			self._size -= 1
			if self._size <= 0 or self._last_key() is not None:
				break
		return sort_min

	def min (self) -> T | None:
		assert self._initialized
		if self._size == 0:
			return self.heap.min()

		sort_min = self._last_key()
		if not self.heap.is_empty:
			heap_min = self.heap.min()
			if self.leq(heap_min, sort_min):
				return heap_min
		return sort_min

	def remove (self, handle: int):
		assert self._initialized
		if handle >= 0:
			self.heap.remove(handle)
			return

		curr = -(handle + 1)
		if curr >= len(self._keys) or self._keys[curr] is None:
			raise TessellationError(f'invalid queue handle {handle}')

		self._keys[curr] = None
		while self._size > 0 and self._last_key() is None:
			self._size -= 1

	__delitem__ = remove
