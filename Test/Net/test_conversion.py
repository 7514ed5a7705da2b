import unittest

import networkx as nx

from petrikit.Net.conversion import from_networkx, is_isomorphic, to_networkx
from petrikit.Net.matrices import transition_matrices
from petrikit.Net.variants import labelled_petri_net, labelled_reaction_net, petri_net


class TestNetworkxConversion(unittest.TestCase):
    def setUp(self) -> None:
        self.sir = labelled_petri_net(
            ["S", "I", "R"],
            ("inf", (("S", "I"), ("I", "I"))),
            ("rec", ("I", "R")),
        )

    def test_bipartite_structure(self):
        G = to_networkx(self.sir)
        self.assertIsInstance(G, nx.DiGraph)
        self.assertEqual(G.number_of_nodes(), 5)
        self.assertEqual(set(nx.get_node_attributes(G, "bipartite").values()), {0, 1})
        self.assertEqual(G.nodes["S:2"]["label"], "I")
        self.assertEqual(G.nodes["T:1"]["kind"], "transition")
        self.assertEqual(G.edges["T:1", "S:2"]["stoich"], 2)
        self.assertEqual(G.edges["S:1", "T:1"]["role"], "input")

    def test_custom_prefixes(self):
        G = to_networkx(self.sir, species_prefix="s", transition_prefix="t")
        self.assertIn("s1", G)
        self.assertIn("t2", G)

    def test_round_trip(self):
        back = from_networkx(to_networkx(self.sir))
        self.assertEqual(back.snames(), self.sir.snames())
        self.assertEqual(back.tnames(), self.sir.tnames())
        self.assertEqual(transition_matrices(back), transition_matrices(self.sir))

    def test_round_trip_keeps_reaction_attributes(self):
        net = labelled_reaction_net(
            {"A": 1.0, "B": 0.0},
            (("f", 0.5), ("A", "B")),
        )
        back = from_networkx(to_networkx(net))
        self.assertTrue(back.has_reaction)
        self.assertEqual(back.rate(1), net.rate(1))
        self.assertEqual(back.concentrations(), {"A": 1.0, "B": 0.0})

    def test_unlabelled_round_trip(self):
        net = petri_net(2, (1, (2, 2)))
        back = from_networkx(to_networkx(net), labelled=False)
        self.assertFalse(back.has_labels)
        self.assertEqual(transition_matrices(back), transition_matrices(net))

    def test_from_networkx_requires_kind(self):
        G = nx.DiGraph()
        G.add_node("x")
        with self.assertRaises(ValueError):
            from_networkx(G)


class TestIsomorphism(unittest.TestCase):
    def test_relabelled_nets_are_isomorphic(self):
        a = petri_net(3, ((1, 2), (2, 2)), (2, 3))
        b = petri_net(3, (1, 3), ((1, 2), (1, 1)))
        self.assertTrue(is_isomorphic(a, b))

    def test_stoichiometry_matters(self):
        a = petri_net(2, (1, 2))
        b = petri_net(2, (1, (2, 2)))
        self.assertFalse(is_isomorphic(a, b))

    def test_match_labels(self):
        a = labelled_petri_net(["A", "B"], ("f", ("A", "B")))
        b = labelled_petri_net(["B", "A"], ("f", ("A", "B")))
        c = labelled_petri_net(["X", "Y"], ("f", ("X", "Y")))
        self.assertTrue(is_isomorphic(a, b, match_labels=True))
        self.assertTrue(is_isomorphic(a, c))
        self.assertFalse(is_isomorphic(a, c, match_labels=True))


if __name__ == "__main__":
    unittest.main()
