"""Convective term c(V, phi) of the momentum equations and its Jacobian.

For every pair of velocity component a and direction b the convected
component is averaged to the flux points (``A``), the convecting component
is interpolated to the same points (``I``), and the product is differenced
over the control volumes of component a (``C``)::

    c_a = sum_b C_ab [(A_ab V_a + yA_ab) * (I_ab phi_b + yI_ab)]

Regularized models (C2, C4, Leray) wrap this base evaluation with the
diffusive filter of :mod:`fv.discretization.convection.filter`.
"""

import numpy as np
from scipy.sparse import bmat, csr_matrix, diags

from fv.discretization.convection.filter import filter_convection
from meshing.operators import ConvectionOperators

CONVECTION_MODELS = ("NoReg", "C2", "C4", "Leray")


class ConvectionCache:
    """Scratch buffers of one base convection evaluation, sized once from the operators."""

    def __init__(self, operators):
        self.c = np.zeros(operators.NV)
        self.convected = {}
        self.convecting = {}
        self.flux = {}
        for key, A in operators.conv.A.items():
            n = A.shape[0]
            self.convected[key] = np.zeros(n)
            self.convecting[key] = np.zeros(n)
            self.flux[key] = np.zeros(n)


def convection_components(c, V, phi, conv, slices, cache, newton_factor=1.0, get_jacobian=False):
    """Base convection of ``V`` by ``phi`` written into ``c``.

    Parameters
    ----------
    c : np.ndarray
        Output buffer of length NV, overwritten.
    V, phi : np.ndarray
        Convected and convecting velocity fields.
    conv : ConvectionOperators
        Narrow or wide operator set with current boundary vectors.
    slices : tuple of slice
        Component index sets (indu, indv, indw).
    cache : ConvectionCache
    newton_factor : float, optional
        Weight of the term from differentiating the convecting field.
    get_jacobian : bool, optional

    Returns
    -------
    c : np.ndarray
    jac : scipy.sparse.csr_matrix or None
        ``dc/dV`` assuming ``phi = V``, block-structured by component.
    """
    blocks = [[None] * 3 for _ in range(3)] if get_jacobian else None

    for a in range(3):
        ca = c[slices[a]]
        ca[:] = 0.0
        Va = V[slices[a]]
        for b in range(3):
            key = (a, b)
            u_f = cache.convected[key]
            phi_f = cache.convecting[key]
            np.add(conv.A[key] @ Va, conv.yA[key], out=u_f)
            np.add(conv.I[key] @ phi[slices[b]], conv.yI[key], out=phi_f)
            np.multiply(u_f, phi_f, out=cache.flux[key])
            ca += conv.C[key] @ cache.flux[key]

            if get_jacobian:
                C = conv.C[key]
                # Convected part on the diagonal block, convecting part couples a with b
                conv_aa = C @ diags(phi_f) @ conv.A[key]
                conv_ab = newton_factor * (C @ diags(u_f) @ conv.I[key])
                blocks[a][a] = conv_aa if blocks[a][a] is None else blocks[a][a] + conv_aa
                blocks[a][b] = conv_ab if blocks[a][b] is None else blocks[a][b] + conv_ab

    jac = csr_matrix(bmat(blocks)) if get_jacobian else None
    return c, jac


class ConvectionModel:
    """Common state of the convection strategies.

    ``evaluate`` returns an array owned by the strategy; it is overwritten by
    the next call.
    """

    name = None

    def __init__(self, setup):
        self.operators = setup.operators
        self.slices = setup.grid.component_slices
        self.newton_factor = setup.solver_settings.newton_factor
        self.alpha = setup.filter_alpha
        self.cache = ConvectionCache(setup.operators)
        self.max_div_filtered = 0.0

    def _base(self, V, phi, cache, get_jacobian=False, conv=None):
        return convection_components(
            cache.c, V, phi,
            self.operators.conv if conv is None else conv,
            self.slices, cache,
            newton_factor=self.newton_factor,
            get_jacobian=get_jacobian,
        )

    def _filter(self, u):
        ops = self.operators
        return filter_convection(u, ops.D_f, ops.yD_f, self.alpha)

    def _record_filtered_divergence(self, V_filtered):
        self.max_div_filtered = float(np.max(np.abs(self.operators.divergence(V_filtered))))

    def evaluate(self, V, phi, t, get_jacobian=False):
        raise NotImplementedError


class NoRegConvection(ConvectionModel):
    """Unregularized convection, with the fourth-order combination ``alpha c - c3`` when available."""

    name = "NoReg"

    def __init__(self, setup):
        super().__init__(setup)
        self.cache3 = ConvectionCache(setup.operators) if setup.operators.order4 else None

    def evaluate(self, V, phi, t, get_jacobian=False):
        ops = self.operators
        c, jac = self._base(V, phi, self.cache, get_jacobian)
        if ops.order4:
            c3, jac3 = self._base(V, phi, self.cache3, get_jacobian, conv=ops.conv3)
            c *= ops.alpha
            c -= c3
            if get_jacobian:
                jac = csr_matrix(ops.alpha * jac - jac3)
        return c, jac


class C2Convection(ConvectionModel):
    """Filter both fields, convect, filter the result."""

    name = "C2"

    def evaluate(self, V, phi, t, get_jacobian=False):
        phi_bar = self._filter(phi)
        V_bar = self._filter(V)
        self._record_filtered_divergence(phi_bar)

        c, jac = self._base(V_bar, phi_bar, self.cache, get_jacobian)
        c[:] = self._filter(c)
        return c, jac


class C4Convection(ConvectionModel):
    """Scale-decomposed convection.

    ``c = c(V_bar, phi_bar) + filter(c(dV, phi_bar) + c(V_bar, dphi))`` with
    ``dV = V - V_bar`` and ``dphi = phi - phi_bar``. The residual fields
    vanish on the walls: their factor of each flux gets no boundary vector,
    the filtered factor keeps its own.
    The three base evaluations use disjoint caches.
    """

    name = "C4"

    def __init__(self, setup):
        super().__init__(setup)
        self.cache2 = ConvectionCache(setup.operators)
        self.cache3 = ConvectionCache(setup.operators)
        conv = setup.operators.conv
        # Views on the same operators; the zero vectors are never updated,
        # the shared dicts are refreshed in place by conv.update
        self.conv_dV = ConvectionOperators(A=conv.A, A_bnd=conv.A_bnd, I=conv.I, I_bnd=conv.I_bnd, C=conv.C)
        self.conv_dV.yI = conv.yI
        self.conv_dphi = ConvectionOperators(A=conv.A, A_bnd=conv.A_bnd, I=conv.I, I_bnd=conv.I_bnd, C=conv.C)
        self.conv_dphi.yA = conv.yA

    def evaluate(self, V, phi, t, get_jacobian=False):
        V_bar = self._filter(V)
        phi_bar = self._filter(phi)
        dV = V - V_bar
        dphi = phi - phi_bar
        self._record_filtered_divergence(V_bar)

        c, jac = self._base(V_bar, phi_bar, self.cache, get_jacobian)
        c2, jac2 = self._base(dV, phi_bar, self.cache2, get_jacobian, conv=self.conv_dV)
        c3, jac3 = self._base(V_bar, dphi, self.cache3, get_jacobian, conv=self.conv_dphi)

        c += self._filter(c2 + c3)
        if get_jacobian:
            jac = csr_matrix(jac + jac2 + jac3)
        return c, jac


class LerayConvection(ConvectionModel):
    """Convect the unfiltered field with the filtered convecting field."""

    name = "Leray"

    def evaluate(self, V, phi, t, get_jacobian=False):
        phi_bar = self._filter(phi)
        self._record_filtered_divergence(phi_bar)
        return self._base(V, phi_bar, self.cache, get_jacobian)


_MODELS = {
    "NoReg": NoRegConvection,
    "C2": C2Convection,
    "C4": C4Convection,
    "Leray": LerayConvection,
}


def get_convection_model(setup):
    """Instantiate the convection strategy selected by ``setup.convection_model``."""
    try:
        model = _MODELS[setup.convection_model]
    except KeyError:
        raise ValueError(
            f"Unknown convection model {setup.convection_model!r}, expected one of {CONVECTION_MODELS}"
        ) from None
    return model(setup)
