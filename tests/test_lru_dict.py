import unittest

from chain_backup.utils.lru_dict import LruDict


class LruDictTestCase(unittest.TestCase):
	def test_0_eviction(self):
		d: LruDict[str, int] = LruDict(2)
		d.set('a', 1)
		d.set('b', 2)
		self.assertEqual(1, d.get('a', None))  # 'a' becomes the most recent one
		d.set('c', 3)
		self.assertEqual(2, len(d))
		self.assertIsNone(d.get('b', None))
		self.assertEqual(1, d.get('a', None))
		self.assertEqual(3, d.get('c', None))

	def test_1_pop_and_clear(self):
		d: LruDict[str, int] = LruDict(4)
		d.set('a', 1)
		d.set('b', 2)
		self.assertEqual(1, d.pop('a', None))
		self.assertIsNone(d.pop('a', None))
		self.assertNotIn('a', d)
		self.assertIn('b', d)
		d.clear()
		self.assertEqual(0, len(d))

	def test_2_bad_size(self):
		with self.assertRaises(ValueError):
			LruDict(0)


if __name__ == '__main__':
	unittest.main()
