import importlib.util
import unittest

import numpy as np

from petrikit.Dynamics import (
    Parameter,
    build_plan,
    ode_rhs,
    vectorfield,
    vectorfield_plan,
)
from petrikit.Net.matrices import TransitionMatrices, matrices_to_net
from petrikit.Net.variants import (
    labelled_petri_net,
    labelled_reaction_net,
    petri_net,
    to_reaction_net,
)
from petrikit.exceptions import RateEvaluationError

HAS_SCIPY = importlib.util.find_spec("scipy") is not None


def _sir(inf_rate=0.4, rec_rate=0.4):
    return labelled_reaction_net(
        {"S": 10.0, "I": 1.0, "R": 0.0},
        (("inf", inf_rate), (("S", "I"), ("I", "I"))),
        (("rec", rec_rate), ("I", "R")),
    )


class TestVectorfield(unittest.TestCase):
    def setUp(self) -> None:
        self.sir = _sir()
        self.u = {"S": 10.0, "I": 1.0, "R": 0.0}

    def test_sir_values(self):
        for make in (vectorfield, vectorfield_plan):
            du = make(self.sir)({}, self.u, None, 0.0)
            self.assertAlmostEqual(du["S"], -4.0)
            self.assertAlmostEqual(du["I"], 3.6)
            self.assertAlmostEqual(du["R"], 0.4)
            self.assertAlmostEqual(sum(du.values()), 0.0)

    def test_conservation_at_sampled_points(self):
        f = vectorfield_plan(self.sir)
        rng = np.random.default_rng(0)
        for _ in range(20):
            u = rng.uniform(0.0, 20.0, size=3)
            du = f(np.zeros(3), u, None, 0.0)
            self.assertAlmostEqual(float(du.sum()), 0.0, places=9)

    def test_positional_state_and_fresh_output(self):
        du = vectorfield(self.sir)(None, np.array([10.0, 1.0, 0.0]), None, 0.0)
        self.assertIsInstance(du, np.ndarray)
        np.testing.assert_allclose(du, [-4.0, 3.6, 0.4])
        du = vectorfield_plan(self.sir)(None, self.u, None, 0.0)
        self.assertEqual(set(du), {"S", "I", "R"})

    def test_du_is_filled_in_place(self):
        buf = np.full(3, 99.0)
        out = vectorfield_plan(self.sir)(buf, [10.0, 1.0, 0.0], None, 0.0)
        self.assertIs(out, buf)
        np.testing.assert_allclose(buf, [-4.0, 3.6, 0.4])

    def test_time_and_state_dependent_rates(self):
        net = _sir(inf_rate=lambda t: 0.1 * t, rec_rate=lambda u, t: 0.1 * u["I"])
        du = vectorfield_plan(net)({}, self.u, None, 4.0)
        self.assertAlmostEqual(du["S"], -4.0)
        self.assertAlmostEqual(du["R"], 0.1)

    def test_parameters_for_unrated_nets(self):
        sir = labelled_petri_net(
            ["S", "I", "R"],
            ("inf", (("S", "I"), ("I", "I"))),
            ("rec", ("I", "R")),
        )
        du = vectorfield(sir)({}, self.u, {"inf": 0.4, "rec": 0.4}, 0.0)
        self.assertAlmostEqual(du["I"], 3.6)

        plain = petri_net(3, ((1, 2), (2, 2)), (2, 3))
        du = vectorfield_plan(plain)(None, [10.0, 1.0, 0.0], [0.4, 0.4], 0.0)
        np.testing.assert_allclose(du, [-4.0, 3.6, 0.4])

    def test_placeholder_rates(self):
        net = _sir(inf_rate=Parameter("beta"), rec_rate=None)
        p = {"beta": 0.4, "rec": lambda t: 0.4}
        for make in (vectorfield, vectorfield_plan):
            du = make(net)({}, self.u, p, 0.0)
            self.assertAlmostEqual(du["S"], -4.0)
            self.assertAlmostEqual(du["R"], 0.4)

    def test_missing_parameter_is_an_error(self):
        net = _sir(rec_rate=None)
        for make in (vectorfield, vectorfield_plan):
            f = make(net)
            with self.assertRaises(RateEvaluationError):
                f({}, self.u, None, 0.0)
            with self.assertRaises(RateEvaluationError):
                f({}, self.u, {"inf": 0.4}, 0.0)

    def test_failing_rate_function(self):
        net = _sir(rec_rate=lambda u, t: u["missing"])
        with self.assertRaises(RateEvaluationError):
            vectorfield_plan(net)({}, self.u, None, 0.0)

    def test_empty_net(self):
        net = petri_net(2)
        du = vectorfield(net)(None, [1.0, 2.0], None, 0.0)
        np.testing.assert_array_equal(du, [0.0, 0.0])


class TestEvaluationPlan(unittest.TestCase):
    def test_sir_plan(self):
        plan = build_plan(_sir())
        self.assertEqual(plan.species, ("S", "I", "R"))
        self.assertEqual(plan.consumes, (((0, 1), (1, 1)), ((1, 1),)))
        self.assertEqual(plan.changes, (((0, -1),), ((0, 1), (1, -1)), ((1, 1),)))
        self.assertEqual(plan.n_terms, 7)

    def test_plan_ignores_later_edits(self):
        net = _sir()
        f = vectorfield_plan(net)
        net.add_transition(tname="extra", rate=1.0)
        du = f({}, {"S": 10.0, "I": 1.0, "R": 0.0}, None, 0.0)
        self.assertAlmostEqual(du["S"], -4.0)

    def test_matches_interpreted_on_random_nets(self):
        for seed in range(12):
            rng = np.random.default_rng(seed)
            ns = int(rng.integers(1, 6))
            nt = int(rng.integers(1, 6))
            inp = rng.integers(0, 3, size=(nt, ns))
            out = rng.integers(0, 3, size=(nt, ns))
            net = to_reaction_net(
                matrices_to_net(TransitionMatrices(inp, out)),
                rng.uniform(0.0, 2.0, size=ns).tolist(),
                rng.uniform(0.1, 1.0, size=nt).tolist(),
            )
            u = rng.uniform(0.0, 3.0, size=ns)
            a = vectorfield(net)(np.zeros(ns), u, None, 0.0)
            b = vectorfield_plan(net)(np.zeros(ns), u, None, 0.0)
            self.assertTrue(np.array_equal(a, b), msg=f"seed {seed}")

            k = np.array([r.value for r in net.subparts("rate")])
            rho = k * np.prod(u ** inp, axis=1)
            np.testing.assert_allclose(a, (out - inp).T @ rho, rtol=1e-10, atol=1e-8)


class TestOdeRhs(unittest.TestCase):
    def test_strategies_agree(self):
        y = [10.0, 1.0, 0.0]
        plan = ode_rhs(_sir())(0.0, y)
        interpreted = ode_rhs(_sir(), strategy="interpreted")(0.0, y)
        np.testing.assert_array_equal(plan, interpreted)

    def test_unknown_strategy(self):
        with self.assertRaises(ValueError):
            ode_rhs(_sir(), strategy="jit")

    @unittest.skipUnless(HAS_SCIPY, "scipy is not installed")
    def test_solve_ivp(self):
        from scipy.integrate import solve_ivp

        net = _sir(inf_rate=0.05, rec_rate=0.2)
        sol = solve_ivp(
            ode_rhs(net), (0.0, 20.0), [10.0, 1.0, 0.0], rtol=1e-8, atol=1e-10
        )
        self.assertTrue(sol.success)
        totals = sol.y.sum(axis=0)
        np.testing.assert_allclose(totals, 11.0, rtol=1e-6)
        self.assertLess(sol.y[0, -1], 10.0)
        self.assertGreater(sol.y[2, -1], 0.0)


if __name__ == "__main__":
    unittest.main()
