import unittest

from libtess.ds.pool import Pool


class Thing:
	def __init__ (self):
		self.value = 0

	def reset (self):
		self.value = 0


class TestPool(unittest.TestCase):
	def test_pull_constructs_and_indexes (self):
		pool = Pool(Thing)
		a = pool.pull()
		b = pool.pull()
		self.assertIsNot(a, b)
		self.assertEqual(a.pool_index, 0)
		self.assertEqual(b.pool_index, 1)
		self.assertEqual(pool.total_created, [a, b])
		self.assertEqual(len(pool), 2)

	def test_repooled_instance_is_reused_and_reset (self):
		pool = Pool(Thing)
		a = pool.pull()
		a.value = 42
		pool.repool(a)
		# state survives until the instance is handed out again
		self.assertEqual(a.value, 42)

		b = pool.pull()
		self.assertIs(a, b)
		self.assertEqual(b.value, 0)
		self.assertEqual(len(pool), 1)

	def test_live_count (self):
		pool = Pool(Thing)
		items = [pool.pull() for _ in range(5)]
		pool.repool(items[0])
		pool.repool(items[3])
		self.assertEqual(pool.live_count, 3)

	def test_temporary_returns_instance (self):
		pool = Pool(Thing)
		with pool.temporary() as tmp:
			tmp.value = 7
			self.assertEqual(pool.live_count, 1)
		self.assertEqual(pool.live_count, 0)
		self.assertIs(pool.pull(), tmp)

	def test_reset_clears_everything (self):
		pool = Pool(Thing)
		items = [pool.pull() for _ in range(3)]
		for i, t in enumerate(items):
			t.value = i + 1
		pool.repool(items[1])
		pool.reset()

		self.assertEqual(len(pool), 0)
		self.assertEqual(pool.live_count, 0)
		self.assertTrue(all(t.value == 0 for t in items))

		fresh = pool.pull()
		self.assertNotIn(fresh, items)
		self.assertEqual(fresh.pool_index, 0)


if __name__ == '__main__':
	unittest.main()
