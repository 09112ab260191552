from collections.abc import Callable, Iterator
from typing import Generic, TypeVar

from libtess.ds import node

T = TypeVar('T')


class Ordered(Generic[T]):
	'''
	A sorted circular list ordered by a caller supplied `cmp(a, b) -> a <= b`.

	The list is anchored by a head node whose `item` is `None`, so walking
	off either end of the list yields `None` rather than raising. Searches
	are linear; the sweep only ever looks a few nodes away from where it
	starts, so a balanced tree would not buy anything.
	'''

	class Node(node.Node, Generic[T]):
		__slots__ = 'item',
		def __init__ (self, item: T = None):
			super().__init__()
			self.item = item

		def delete (self):
			self.remove_from_chain(clear_self=True)
			self.item = None

	def __init__ (self, cmp: Callable[[T, T], bool] = None):
		self.leq = cmp
		self.head = Ordered.Node()

	def insert (self, item: T) -> 'Ordered.Node[T]':
		return self.insert_before(self.head, item)

	def insert_before (self, at: 'Ordered.Node[T]', item: T) -> 'Ordered.Node[T]':
		'''
		Walks backwards from `at` to the first node whose item sorts at or
		before `item`, and links a new node for `item` right after it.
		'''
		n = at
		while True:
			n = n.prev
			if n.item is None or self.leq(n.item, item):
				break
		return n.insert_after(Ordered.Node(item))

	def search (self, item: T) -> 'Ordered.Node[T]':
		'''
		Returns the first node whose item sorts at or after `item`, or the
		head if there is none.
		'''
		n = self.head
		while True:
			n = n.next
			if n.item is None or self.leq(item, n.item):
				return n

	def min (self) -> 'Ordered.Node[T]':
		return self.head.next

	def clear (self):
		for n in list(self.head.walk_head_safe()):
			n.delete()
		self.head.reset()

	def __iter__ (self) -> Iterator[T]:
		for n in +self.head:
			yield n.item

	def __len__ (self):
		return self.head.chain_length() - 1
