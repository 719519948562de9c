import numpy as np
from scipy.sparse import diags

from time_steppers import newton_raphson


def _square_root_problem(target):
    def residual(x):
        return x * x - target

    def jacobian(x):
        return diags(2.0 * x).tocsr()

    return residual, jacobian


def test_converged_initial_guess_needs_no_solve():
    residual, jacobian = _square_root_problem(np.array([4.0, 9.0]))
    x0 = np.array([2.0, 3.0])
    x, result = newton_raphson(residual, jacobian, x0)

    assert x is x0
    assert result.converged
    assert result.iterations == 0
    assert result.linear_solves == 0


def test_full_newton_converges():
    residual, jacobian = _square_root_problem(np.array([4.0, 9.0, 2.0]))
    x, result = newton_raphson(residual, jacobian, np.array([3.0, 4.0, 1.0]), abstol=1e-12)

    assert result.converged
    np.testing.assert_allclose(x, [2.0, 3.0, np.sqrt(2.0)])
    assert result.linear_solves == result.iterations
    assert result.residual_norm <= 1e-12 < result.initial_residual_norm


def test_approximate_newton_reuses_jacobian():
    calls = []
    residual, jacobian = _square_root_problem(np.array([4.0]))

    def counting_jacobian(x):
        calls.append(x.copy())
        return jacobian(x)

    x, result = newton_raphson(
        residual, counting_jacobian, np.array([3.0]), newton_type="approximate", maxiter=100, abstol=1e-12
    )

    assert result.converged
    assert len(calls) == 1
    np.testing.assert_allclose(x, [2.0])


def test_maxiter_reached_is_reported():
    residual, jacobian = _square_root_problem(np.array([4.0]))
    x, result = newton_raphson(residual, jacobian, np.array([30.0]), maxiter=2, abstol=1e-14)

    assert not result.converged
    assert result.iterations == 2
    df = result.to_dataframe()
    assert df["converged"].iloc[0] == False  # noqa: E712
