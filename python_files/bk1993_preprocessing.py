# ================================================== #
# This script provides a replication of the baseline #
# RBC model with basic government spending, as shown #
# in Baxter & King (1993, AER), Section III. This    #
# module declares the model symbolically, derives    #
# its static and dynamic Jacobians and writes them   #
# to Python function files used by the solvers.      #
# ================================================== #

# import libraries
import logging

import sympy as sp
import numpy as np
import pandas as pd
from writeOut import writeOut, loadOut

logger = logging.getLogger(__name__)

### Declare symbolic endogenous variables ###

# model name
model_name = "rbc"

# declare endogenous variables
endo_names = [
    "y", "c", "l", "n", "iv", "k", "lam", "tr", "tau", "gb",
    "w", "q", "r", "uc", "ul", "fn", "fk", "check_walras"
]

# declare exogenous variables
exo_names = ["e_gb"]

# declare parameters
param_names = [
    "A", "GAMMAX", "BETA", "DELTA_K", "THETA_L",
    "THETA_K", "THETA_N", "GB_BAR", "TAU_BAR"
]

# compute lengths for later use
endo_nbr = len(endo_names)
exo_nbr = len(exo_names)
param_nbr = len(param_names)

# time indexes
time_ind = ["tm1", "t", "tp1", "ss"]

# map time indexes to symbolic endogenous variables
symbols = {}
for var in endo_names:
    for ind in time_ind:
        symbols[f"{var}_{ind}"] = sp.Symbol(f"{var}_{ind}")

# exogenous variables
for eps in exo_names:
    symbols[eps] = sp.Symbol(eps)

# parameters
for param in param_names:
    symbols[param] = sp.Symbol(param)

### Model equations using symbolic mapping ###

# declare shorthand
s = symbols

# dynamic model equations, tagged for diagnostics
tagged_eqs = [
    ("marginal utility of consumption",
     s["uc_t"] - s["c_t"]**(-1)),
    ("marginal utility of leisure",
     s["ul_t"] - s["THETA_L"] * s["l_t"]**(-1)),
    ("production function",
     s["y_t"] - s["A"] * s["k_tm1"]**s["THETA_K"] * s["n_t"]**s["THETA_N"]),
    ("marginal product of capital",
     s["fk_t"] - s["THETA_K"] * s["A"] * s["k_tm1"]**(s["THETA_K"] - 1) * s["n_t"]**s["THETA_N"]),
    ("marginal product of labor",
     s["fn_t"] - s["THETA_N"] * s["A"] * s["k_tm1"]**s["THETA_K"] * s["n_t"]**(s["THETA_N"] - 1)),
    ("capital accumulation",
     s["GAMMAX"] * s["k_t"] - ((1 - s["DELTA_K"]) * s["k_tm1"] + s["iv_t"])),
    ("time endowment",
     s["l_t"] + s["n_t"] - 1),
    # household budget; redundant given the resource constraint and the
    # government budget, so check_walras must come out as zero
    ("household budget (Walras check)",
     s["c_t"] + s["iv_t"] - (1 - s["tau_t"]) * s["y_t"] - s["tr_t"] - s["check_walras_t"]),
    ("resource constraint",
     s["c_t"] + s["iv_t"] + s["gb_t"] - s["y_t"]),
    ("government budget",
     s["tau_t"] * s["y_t"] - s["gb_t"] - s["tr_t"]),
    ("consumption FOC",
     s["uc_t"] - s["lam_t"]),
    ("labor supply FOC",
     s["ul_t"] - s["lam_t"] * (1 - s["tau_t"]) * s["fn_t"]),
    ("Euler equation",
     s["BETA"] * s["lam_tp1"] * (s["q_tp1"] + 1 - s["DELTA_K"]) - s["GAMMAX"] * s["lam_t"]),
    ("after-tax rental rate",
     s["q_t"] - (1 - s["tau_t"]) * s["fk_t"]),
    ("government purchases rule",
     s["gb_t"] - (s["GB_BAR"] + s["e_gb"])),
    ("tax rate rule",
     s["tau_t"] - s["TAU_BAR"]),
    ("real interest rate",
     1 + s["r_t"] - (s["GAMMAX"] * s["lam_t"] / (s["lam_tp1"] * s["BETA"]))),
    ("wage",
     s["w_t"] - s["fn_t"]),
]

equation_names = [name for name, _ in tagged_eqs]
dynamic_eqs = [eq for _, eq in tagged_eqs]


def check_square(eqs, names):
    if len(eqs) != len(names):
        raise ValueError("You need to have as many endogenous variables as model equations. BAD!")


check_square(dynamic_eqs, endo_names)


### Create lead-lag incidence matrix for dynamic variables ###

def lead_lag_incidence_matrix(eqs):
    """
    Build the 3 x endo_nbr lead-lag incidence matrix of a list of equations.

    Rows are t-1, t and t+1. Non-zero entries number the dynamic variables
    row by row (all lags, then current values, then leads), so an entry is
    the 1-based column of that variable in the dynamic Jacobian.
    """
    free = set().union(*(sp.sympify(eq).free_symbols for eq in eqs))

    # declare empty matrix
    lead_lag_incidence = np.zeros((3, endo_nbr), dtype=int)
    idx = 1
    for row, ind in enumerate(["tm1", "t", "tp1"]):
        for j, name in enumerate(endo_names):
            if symbols[f"{name}_{ind}"] in free:
                lead_lag_incidence[row, j] = idx
                idx += 1
    return lead_lag_incidence


lead_lag_incidence = lead_lag_incidence_matrix(dynamic_eqs)

# distinguish endogenous variables by timing structure #
lead = lead_lag_incidence[2, :] != 0
lag  = lead_lag_incidence[0, :] != 0
curr = lead_lag_incidence[1, :] != 0

endo_static_names = [endo_names[i] for i in range(endo_nbr) if not lag[i] and curr[i] and not lead[i]]
endo_pred_names   = [endo_names[i] for i in range(endo_nbr) if     lag[i] and not lead[i]]
endo_fwrd_names   = [endo_names[i] for i in range(endo_nbr) if not lag[i] and     lead[i]]
endo_mixed_names  = [endo_names[i] for i in range(endo_nbr) if     lag[i] and     lead[i]]

# ordered variable names as in Dynare: static, pred, mixed, fwrd
order_var = endo_static_names + endo_pred_names + endo_mixed_names + endo_fwrd_names

# construct ordered dynamic variable list based on incidence matrix
dynamic_names = (
    [f"{endo_names[i]}_tm1" for i in range(endo_nbr) if lead_lag_incidence[0, i] != 0] +
    [f"{endo_names[i]}_t"   for i in range(endo_nbr) if lead_lag_incidence[1, i] != 0] +
    [f"{endo_names[i]}_tp1" for i in range(endo_nbr) if lead_lag_incidence[2, i] != 0]
)
dynamic_syms = [symbols[name] for name in dynamic_names]
exo_syms = [symbols[name] for name in exo_names]


### Static model ###

def static_equations(eqs):
    """Replace time-indexed and ss-suffixed variables with static counterparts."""
    replacements = {
        symbols[f"{var}_{suffix}"]: sp.Symbol(var)
        for var in endo_names
        for suffix in time_ind
    }
    return sp.Matrix([sp.sympify(eq).xreplace(replacements) for eq in eqs])


# list of static (unsuffixed) endogenous symbols
static_syms = [sp.Symbol(name) for name in endo_names]


def lead_lag_table():
    """Lead-lag incidence matrix as a labelled DataFrame, for inspection."""
    return pd.DataFrame(
        lead_lag_incidence,
        index=["t-1", "t", "t+1"],
        columns=endo_names
    )


### Compute Jacobians and write them to Python script files ###

def preprocess(output_dir="model_files"):
    """
    Derive the static and dynamic model, write the residual and Jacobian
    function files into output_dir and return the MODEL structure.
    """
    logger.info("Lead-Lag Incidence Matrix:\n%s", lead_lag_table().to_string())

    # compute dynamic Jacobian matrix
    dynamic_resid = sp.Matrix(dynamic_eqs)
    dynamic_g1 = dynamic_resid.jacobian(dynamic_syms + exo_syms)

    # generate static model equations and their Jacobian
    static_resid = static_equations(dynamic_eqs)
    static_g1 = static_resid.jacobian(static_syms)

    outputs = {
        "static_resid": (static_resid, "residual", True),
        "static_g1": (static_g1, "g1", True),
        "dynamic_resid": (dynamic_resid, "residual", False),
        "dynamic_g1": (dynamic_g1, "g1", False),
    }

    functions = {}
    for key, (Output, name_of_output, is_static) in outputs.items():
        fname = f"{model_name}_{key}"
        path = writeOut(Output, fname, name_of_output, is_static=is_static,
                        dynamic_names=dynamic_names, endo_names=endo_names,
                        exo_names=exo_names, param_names=param_names,
                        output_dir=output_dir)
        logger.debug("Wrote %s", path)
        functions[key] = loadOut(fname, output_dir)

    # store to structure which can be passed to solvers,
    # or used to auto-generate simulation routines
    MODEL = {
        "fname": model_name,
        "endo_names": endo_names,
        "endo_nbr": endo_nbr,
        "nstatic": len(endo_static_names),
        "npred": len(endo_pred_names),
        "nboth": len(endo_mixed_names),
        "nfwrd": len(endo_fwrd_names),
        "nspred": len(endo_pred_names) + len(endo_mixed_names),
        "nsfwrd": len(endo_mixed_names) + len(endo_fwrd_names),
        "exo_names": exo_names,
        "exo_nbr": exo_nbr,
        "lead_lag_incidence": lead_lag_incidence,
        "param_names": param_names,
        "param_nbr": param_nbr,
        "order_var": order_var,
        "dynamic_names": dynamic_names,
        "equation_names": equation_names,
        "model_dir": str(output_dir),
        **functions,
    }
    return MODEL
