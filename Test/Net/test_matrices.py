import unittest

import numpy as np

from petrikit.Net.conversion import is_isomorphic
from petrikit.Net.matrices import TransitionMatrices, matrices_to_net, transition_matrices
from petrikit.Net.petri import PetriNet
from petrikit.Net.variants import labelled_petri_net, petri_net


class TestTransitionMatrices(unittest.TestCase):
    def test_sir_matrices(self):
        net = petri_net(3, ((1, 2), (2, 2)), (2, 3))
        tm = transition_matrices(net)
        np.testing.assert_array_equal(tm.input, [[1, 1, 0], [0, 1, 0]])
        np.testing.assert_array_equal(tm.output, [[0, 2, 0], [0, 0, 1]])
        np.testing.assert_array_equal(tm.stoichiometry, [[-1, 1, 0], [0, -1, 1]])
        self.assertEqual(tm.shape, (2, 3))
        self.assertEqual(tm.input.dtype, np.int64)

    def test_labels_do_not_matter(self):
        a = petri_net(2, (1, (2, 2)))
        b = labelled_petri_net(["x", "y"], ("f", ("x", ("y", "y"))))
        self.assertEqual(transition_matrices(a), transition_matrices(b))

    def test_empty_net(self):
        tm = transition_matrices(PetriNet())
        self.assertEqual(tm.shape, (0, 0))

    def test_round_trip(self):
        rng = np.random.default_rng(7)
        for _ in range(5):
            inp = rng.integers(0, 3, size=(4, 5))
            out = rng.integers(0, 3, size=(4, 5))
            tm = TransitionMatrices(inp, out)
            net = matrices_to_net(tm)
            self.assertEqual(net.ns(), 5)
            self.assertEqual(net.nt(), 4)
            self.assertEqual(net.ni(), int(inp.sum()))
            self.assertEqual(transition_matrices(net), tm)

    def test_net_round_trip(self):
        nets = [
            petri_net(3, ((1, 1, 2), ()), ((), (3, 3)), (2, (1, 3))),
            petri_net(2, ((), ()), ((1, 1, 1), (2, 2))),
            petri_net(1),
            labelled_petri_net(["x", "y"], ("f", (("x", "x"), "y")), ("g", ((), "x"))),
        ]
        for net in nets:
            tm = transition_matrices(net)
            back = matrices_to_net(tm)
            self.assertEqual((back.ns(), back.nt()), (net.ns(), net.nt()))
            self.assertEqual((back.ni(), back.no()), (net.ni(), net.no()))
            for t in net.parts("T"):
                self.assertEqual(sorted(back.inputs(t)), sorted(net.inputs(t)))
                self.assertEqual(sorted(back.outputs(t)), sorted(net.outputs(t)))
            self.assertEqual(transition_matrices(back), tm)
            self.assertTrue(is_isomorphic(back, net))

    def test_from_matrices_classmethod(self):
        tm = TransitionMatrices(np.array([[2, 0]]), np.array([[0, 1]]))
        net = PetriNet.from_matrices(tm)
        self.assertEqual(net.inputs(1), [1, 1])
        self.assertEqual(net.outputs(1), [2])

    def test_validation(self):
        with self.assertRaises(ValueError):
            TransitionMatrices(np.zeros((2, 2)), np.zeros((2, 2)))
        with self.assertRaises(ValueError):
            TransitionMatrices(np.zeros((2, 2), dtype=int), np.zeros((2, 3), dtype=int))
        with self.assertRaises(ValueError):
            TransitionMatrices(np.array([[-1]]), np.array([[0]]))


if __name__ == "__main__":
    unittest.main()
