from collections.abc import Iterator
from typing import Self


class Node:
	'''
	Intrusive node of a circular doubly-linked list. A lone node is a list
	of one, pointing at itself both ways. Lists are usually anchored by a
	"head" node that carries no payload.
	'''
	__slots__ = '_prev_node', '_next_node'
	def __init__ (self):
		self._prev_node = self._next_node = self

	prev: Self = property(lambda self: self._prev_node,
	                      lambda self, v: setattr(self, '_prev_node', v))
	next: Self = property(lambda self: self._next_node,
	                      lambda self, v: setattr(self, '_next_node', v))

	def insert_before (self, node: Self) -> Self:
		'''
		...prev - +node+ - self - next...
		'''
		node.next = self
		node.prev = self.prev
		self.prev.next = node
		self.prev = node
		return node

	def insert_after (self, node: Self) -> Self:
		'''
		...prev - self - +node+ - next...
		'''
		node.prev = self
		node.next = self.next
		self.next.prev = node
		self.next = node
		return node

	def remove_from_chain (self, clear_self = False):
		'''
		(...prev - self - next...) becomes (...prev - next...)
		'''
		self.prev.next = self.next
		self.next.prev = self.prev
		if clear_self:
			self.next = self.prev = self

	def reset (self):
		self._prev_node = self._next_node = self

	def __iter__ (self) -> Iterator[Self]:
		n = self
		while True:
			yield n
			if (n := n.next) is None or n is self:
				break

	def __pos__ (self) -> Iterator[Self]:
		"""
		A forwards-marching head iterator, IE in the chain:
		`a - b - c`, `for n in +a:` will yield `b, c`, but not `a`
		"""
		n = self
		while not (((n:=n.next) is None) or (n is self)):
			yield n

	def walk_head_safe (self) -> Iterator[Self]:
		'''
		Same as `+head`, but the successor is fetched before each node is
		yielded, so the yielded node may be unlinked (or freed) by the loop body.
		'''
		n = self.next
		while n is not self:
			nx = n.next
			yield n
			n = nx

	def chain_length (self) -> int:
		i = 0
		n = self
		while True:
			i += 1
			if (n:=n.next) is None or (n is self):
				return i
