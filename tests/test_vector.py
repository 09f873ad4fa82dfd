#!/usr/bin/env python3
import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from kbchat.utils.vector import DimensionMismatchError, cosine_similarity, dot_product, magnitude


class TestVectorMath(unittest.TestCase):
    def test_dot_and_magnitude(self):
        self.assertEqual(dot_product([1, 2, 3], [4, 5, 6]), 32.0)
        self.assertAlmostEqual(magnitude([3, 4]), 5.0)

    def test_cosine_is_symmetric(self):
        a, b = [0.2, -1.5, 3.0], [1.0, 0.4, -0.7]
        self.assertAlmostEqual(cosine_similarity(a, b), cosine_similarity(b, a))

    def test_self_similarity_is_one(self):
        self.assertAlmostEqual(cosine_similarity([0.3, 0.1, 0.9], [0.3, 0.1, 0.9]), 1.0)

    def test_orthogonal_and_opposite(self):
        self.assertAlmostEqual(cosine_similarity([1, 0], [0, 1]), 0.0)
        self.assertAlmostEqual(cosine_similarity([1, 0], [-1, 0]), -1.0)

    def test_missing_empty_or_zero_vectors_score_zero(self):
        self.assertEqual(cosine_similarity(None, [1, 2]), 0)
        self.assertEqual(cosine_similarity([1, 2], None), 0)
        self.assertEqual(cosine_similarity([], [1, 2]), 0)
        self.assertEqual(cosine_similarity([0, 0], [1, 2]), 0)
        self.assertEqual(cosine_similarity([1, 2], [0.0, 0.0]), 0)

    def test_dimension_mismatch_fails_fast(self):
        with self.assertRaises(DimensionMismatchError):
            cosine_similarity([1, 2, 3], [1, 2])


if __name__ == "__main__":
    unittest.main()
