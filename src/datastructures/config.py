"""Configuration and metadata data structures."""
from dataclasses import dataclass, asdict
import pandas as pd


@dataclass
class Info:
    """Base solver metadata, config and run info.

    Parameters
    ----------
    Re : float
        Reynolds number.
    nx : int, optional
        Number of cells in x-direction. Default is 16.
    ny : int, optional
        Number of cells in y-direction. Default is 16.
    nz : int, optional
        Number of cells in z-direction. Default is 4.
    lid_velocity : float, optional
        x-velocity of the lid. Default is 1.
    lid_velocity_w : float, optional
        z-velocity of the lid. Default is 0.
    Lx : float, optional
        Domain length in x-direction. Default is 1.
    Ly : float, optional
        Domain length in y-direction. Default is 1.
    Lz : float, optional
        Domain length in z-direction. Default is 0.4.
    method : str, optional
        Time integration method name. Default is 'RK44'.
    n_steps : int, optional
        Number of time steps performed. Default is None.
    final_time : float, optional
        Time reached. Default is None.
    finished : bool, optional
        Whether the end time was reached. Default is False.
    max_divergence : float, optional
        Max-norm of the discrete divergence of the final velocity. Default is None.
    newton_failures : int, optional
        Number of implicit steps whose Newton solve hit maxiter. Default is 0.
    """
    # Physics parameters (required)
    Re: float

    # Grid parameters (with defaults)
    nx: int = 16
    ny: int = 16
    nz: int = 4

    # Physics parameters (with defaults)
    lid_velocity: float = 1
    lid_velocity_w: float = 0
    Lx: float = 1
    Ly: float = 1
    Lz: float = 0.4

    # Solver config
    method: str = "RK44"

    # Run info
    n_steps: int = None
    final_time: float = None
    finished: bool = False
    max_divergence: float = None
    newton_failures: int = 0

    def to_dataframe(self) -> pd.DataFrame:
        """Convert config/metadata to single-row DataFrame.

        Returns
        -------
        pd.DataFrame
            Single-row DataFrame with all configuration and metadata fields.
        """
        return pd.DataFrame([asdict(self)])


@dataclass
class UnsteadyInfo(Info):
    """Time integration and model settings.

    Inherits all parameters from Info and adds unsteady-specific parameters.

    Parameters
    ----------
    t_start : float, optional
        Initial time. Default is 0.
    t_end : float, optional
        Final time. Default is 1.
    dt : float, optional
        Fixed time step; None selects adaptive time stepping. Default is None.
    n_adapt_dt : int, optional
        Recompute the adaptive time step every n steps. Default is 1.
    cfl : float, optional
        Safety factor of the adaptive time step. Default is 1.
    method_startup : str, optional
        One-step method for the first steps of a multistep method. Default is None.
    nstartup : int, optional
        Number of startup steps. Default is 1.
    convection_model : str, optional
        'NoReg', 'C2', 'C4' or 'Leray'. Default is 'NoReg'.
    viscosity_model : str, optional
        Default is 'laminar'.
    filter_alpha : float, optional
        Filter strength of the regularized convection models. Default is 0.
    order4 : bool, optional
        Fourth-order spatial discretization (NoReg, uniform grids). Default is False.
    pressure_solver : str, optional
        'direct' or 'cg'. Default is 'direct'.
    p_initial : bool, optional
        Compute a pressure compatible with the initial velocity. Default is True.
    p_add_solve : bool, optional
        Additional pressure solve after Runge-Kutta steps. Default is False.
    newton_factor : float, optional
        1 for Newton, 0 for Picard linearization of convection. Default is 1.
    newton_type : str, optional
        'no', 'approximate' or 'full'. Default is 'full'.
    newton_maxiter : int, optional
        Default is 10.
    newton_abstol : float, optional
        Default is 1e-10.
    newton_reltol : float, optional
        Default is 1e-14.
    log_every : int, optional
        Print progress every n steps; 0 disables it. Default is 10.
    """
    t_start: float = 0.0
    t_end: float = 1.0
    dt: float = None
    n_adapt_dt: int = 1
    cfl: float = 1.0
    method_startup: str = None
    nstartup: int = 1
    convection_model: str = "NoReg"
    viscosity_model: str = "laminar"
    filter_alpha: float = 0.0
    order4: bool = False
    pressure_solver: str = "direct"
    p_initial: bool = True
    p_add_solve: bool = False
    newton_factor: float = 1.0
    newton_type: str = "full"
    newton_maxiter: int = 10
    newton_abstol: float = 1e-10
    newton_reltol: float = 1e-14
    log_every: int = 10
