import unittest

from petrikit.Dynamics import Constant, vectorfield_plan
from petrikit.Net.variants import labelled_petri_net
from petrikit.Open.typed import (
    TypedPetriNet,
    add_params,
    add_reflexives,
    oapply_typed,
    typed_product,
)
from petrikit.Open.wiring import WiringDiagram
from petrikit.exceptions import (
    ArityMismatchError,
    MissingAttributeError,
    SchemaMismatchError,
    UnknownNameError,
    WiringError,
)


def _ontology():
    return labelled_petri_net(
        ["Pop"],
        ("infect", (("Pop", "Pop"), ("Pop", "Pop"))),
        ("disease", ("Pop", "Pop")),
        ("strata", ("Pop", "Pop")),
    )


class TestTypedPetri(unittest.TestCase):
    def setUp(self) -> None:
        self.ontology = _ontology()
        sird_wd = WiringDiagram.relation(
            (),
            ("infect", ("S", "I", "I", "I")),
            ("disease", ("I", "R")),
            ("disease", ("I", "D")),
        )
        self.sird = add_params(
            oapply_typed(self.ontology, sird_wd, ["inf", "recover", "die"]),
            {"S": 1.0, "I": 1.0, "R": 0.0, "D": 0.0},
            {"inf": 0.5, "recover": 1.0, "die": 0.2},
        )
        quarantine_wd = WiringDiagram.relation(
            (),
            ("strata", ("Q", "NQ")),
            ("strata", ("NQ", "Q")),
        )
        self.quarantine = add_params(
            oapply_typed(self.ontology, quarantine_wd, ["exit_Q", "enter_Q"]),
            {"Q": 1.0, "NQ": 1.0},
            {"exit_Q": 0.5, "enter_Q": 0.5},
        )

    def _augmented(self):
        quarantine = add_reflexives(
            self.quarantine, [["disease"], ["disease", "infect"]], self.ontology
        )
        sird = add_reflexives(self.sird, [["strata"], ["strata"], ["strata"], []], self.ontology)
        return quarantine, sird

    def test_oapply_typed(self):
        dom = self.sird.dom
        self.assertEqual((dom.ns(), dom.nt()), (4, 3))
        self.assertEqual(dom.snames(), ["S", "I", "R", "D"])
        self.assertEqual(dom.tnames(), ["inf", "recover", "die"])
        self.assertEqual(dom.inputs(1), [1, 2])
        self.assertEqual(dom.outputs(1), [2, 2])
        self.assertEqual(self.sird.components["T"], (1, 2, 2))
        self.assertEqual(self.sird.components["I"], (1, 2, 3, 3))
        self.assertEqual(self.sird.species_of_type(1), [1, 2, 3, 4])

    def test_add_params(self):
        dom = self.sird.dom
        self.assertEqual(dom.concentrations(), {"S": 1.0, "I": 1.0, "R": 0.0, "D": 0.0})
        self.assertEqual(dom.rate(3), Constant(0.2))
        self.assertEqual(self.sird.codom, self.ontology)

    def test_add_params_needs_every_value(self):
        wd = WiringDiagram.relation((), ("disease", ("I", "R")))
        typed = oapply_typed(self.ontology, wd)
        with self.assertRaises(MissingAttributeError):
            add_params(typed, {"I": 1.0}, {"disease": 0.1})
        with self.assertRaises(UnknownNameError):
            add_params(typed, {"I": 1.0, "R": 0.0, "X": 2.0}, {"disease": 0.1})

    def test_add_reflexives(self):
        quarantine, sird = self._augmented()
        self.assertEqual(quarantine.dom.nt(), 5)
        self.assertEqual(sird.dom.nt(), 6)
        dom = quarantine.dom
        self.assertEqual(dom.tnames()[2:], ["disease_Q", "disease_NQ", "infect_NQ"])
        self.assertEqual(dom.inputs(5), [2, 2])
        self.assertEqual(dom.outputs(5), [2, 2])
        self.assertEqual(quarantine.components["T"], (3, 3, 2, 2, 1))
        self.assertIsNone(dom.rate(5))
        # the original model is unchanged
        self.assertEqual(self.quarantine.dom.nt(), 2)

    def test_typed_product(self):
        quarantine, sird = self._augmented()
        stratified = typed_product(quarantine, sird)
        dom = stratified.dom
        self.assertEqual(dom.ns(), 8)
        self.assertEqual(dom.nt(), 6 + 4 + 1)
        self.assertEqual(dom.sname(1), ("Q", "S"))
        self.assertIsInstance(dom.sname(1), tuple)
        self.assertEqual(dom.concentration(1), (1.0, 1.0))
        self.assertTrue(all(isinstance(c, float) for c in dom.concentration(1)))
        self.assertEqual(dom.concentrations()[("NQ", "R")], (1.0, 0.0))

        infection = dom.transition_index(("infect_NQ", "inf"))
        nq_s = dom.species_index(("NQ", "S"))
        nq_i = dom.species_index(("NQ", "I"))
        self.assertEqual(dom.inputs(infection), [nq_s, nq_i])
        self.assertEqual(dom.outputs(infection), [nq_i, nq_i])
        self.assertEqual(stratified.codom, self.ontology)

    def test_product_rates(self):
        quarantine, sird = self._augmented()
        stratified = typed_product(quarantine, sird)
        self.assertIsNone(stratified.dom.rate(1))

        def multiply(x, y):
            return (x.value if x else 1.0) * (y.value if y else 1.0)

        combined = typed_product(quarantine, sird, combine_rates=multiply)
        dom = combined.dom
        self.assertEqual(dom.rate(dom.transition_index(("exit_Q", "strata_S"))), Constant(0.5))
        self.assertEqual(dom.rate(dom.transition_index(("disease_Q", "die"))), Constant(0.2))
        u = [a * b for a, b in dom.subparts("concentration")]
        du = vectorfield_plan(dom)(None, u, None, 0.0)
        self.assertAlmostEqual(float(du.sum()), 0.0)

    def test_product_needs_same_ontology(self):
        other = labelled_petri_net(["Pop"], ("strata", ("Pop", "Pop")))
        wd = WiringDiagram.relation((), ("strata", ("A", "B")))
        with self.assertRaises(SchemaMismatchError):
            typed_product(self.quarantine, oapply_typed(other, wd))

    def test_box_arity_checked(self):
        wd = WiringDiagram.relation((), ("infect", ("S", "I")))
        with self.assertRaises(ArityMismatchError):
            oapply_typed(self.ontology, wd)
        with self.assertRaises(ArityMismatchError):
            oapply_typed(self.ontology, WiringDiagram.relation((), ("strata", ("A", "B"))), [])
        with self.assertRaises(UnknownNameError):
            oapply_typed(self.ontology, WiringDiagram.relation((), ("vaccinate", ("A", "B"))))

    def test_mixed_species_types(self):
        ontology = labelled_petri_net(
            ["Human", "Mosquito"],
            ("bite", (("Human", "Mosquito"), ("Human", "Mosquito"))),
            ("age", ("Human", "Human")),
        )
        wd = WiringDiagram.relation((), ("bite", ("H", "H", "H", "H")))
        with self.assertRaises(WiringError):
            oapply_typed(ontology, wd)
        typed = oapply_typed(ontology, WiringDiagram.relation((), ("age", ("H", "H"))))
        with self.assertRaises(WiringError):
            add_reflexives(typed, [["bite"]])

    def test_structure_is_checked(self):
        dom = labelled_petri_net(["A", "B"], ("f", ("A", "B")))
        with self.assertRaises(ValueError):
            TypedPetriNet(dom, self.ontology, {"S": [1], "T": [2], "I": [3], "O": [3]})
        with self.assertRaises(ValueError):
            TypedPetriNet(dom, self.ontology, {"S": [1, 1], "T": [2], "I": [1], "O": [3]})
        typed = TypedPetriNet(dom, self.ontology, {"S": [1, 1], "T": [2], "I": [3], "O": [3]})
        self.assertEqual(typed.transition_type(1), 2)


if __name__ == "__main__":
    unittest.main()
