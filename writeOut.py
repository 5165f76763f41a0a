import os
import types
import sympy as sp

# indentation helper
INDENT = "    "


def _declarations(comment, names, source):
    # one local per name, unpacked from the positional argument `source`
    lines = [f"{INDENT}# {comment}"]
    lines += [f"{INDENT}{name} = {source}[{j}]" for j, name in enumerate(names)]
    return lines + [""]


def writeOut(Output, name_of_function, name_of_output, is_static,
             dynamic_names, endo_names, exo_names, param_names,
             output_dir="."):

    """
    Helper function to write symbolic residuals or Jacobian expressions
    to a Python function file.

    Parameters:
    - Output: SymPy Matrix of symbolic expressions
    - name_of_function: str, base name of the output .py file
    - name_of_output: str, name of the output variable (e.g. 'residual' or 'g1')
    - is_static: bool, whether the model is static (True) or dynamic (False)
    - dynamic_names, endo_names, exo_names, param_names: lists of variable names (str)
    - output_dir: str or path, directory receiving the file

    The generated function returns a list of rows (lists of floats), the
    same shape as Output. Returns the path of the written file.
    """
    if is_static:
        signature = f"def {name_of_function}(endo_vars, exo_vars, params):"
        body = _declarations("Evaluate numerical values for endogenous variables", endo_names, "endo_vars")
    else:
        signature = f"def {name_of_function}(dynamic_vars, exo_vars, params, steady_state):"
        body = _declarations("Evaluate numerical values for dynamic variables", dynamic_names, "dynamic_vars")

    body += _declarations("Evaluate numerical values for exogenous variables", exo_names, "exo_vars")
    body += _declarations("Evaluate numerical values for parameters from params", param_names, "params")
    if not is_static:
        body += _declarations("Evaluate numerical values for steady-state variables",
                              [f"{name}_ss" for name in endo_names], "steady_state")

    # initialize output array, then fill the non-zero entries only
    n_rows, n_cols = Output.shape
    body.append(f"{INDENT}{name_of_output} = [[0.0]*{n_cols} for _ in range({n_rows})]")
    body.append("")
    body.append(f"{INDENT}# Evaluate non-zero entries")
    Output_simplified = Output.applyfunc(sp.simplify)
    for i in range(n_rows):
        for j in range(n_cols):
            expr = Output_simplified[i, j]
            if expr != 0:
                body.append(f"{INDENT}{name_of_output}[{i}][{j}] = {sp.pycode(expr)}")
    body.append("")
    body.append(f"{INDENT}return {name_of_output}")

    os.makedirs(output_dir, exist_ok=True)
    filename = os.path.join(output_dir, f"{name_of_function}.py")

    # delete old version of file (if it exists)
    if os.path.exists(filename):
        os.remove(filename)

    with open(filename, "w") as f:
        f.write("\n".join(["import math", "", "", signature] + body) + "\n")

    return filename


def loadOut(name_of_function, output_dir="."):

    """
    Import a function file written by writeOut and return the function.

    Parameters:
    - name_of_function: str, base name of the .py file (and of the function in it)
    - output_dir: str or path, directory holding the file
    """
    filename = os.path.join(output_dir, f"{name_of_function}.py")
    if not os.path.exists(filename):
        raise FileNotFoundError(f"No generated model file at {filename}")

    # compiled from source on every call, no __pycache__ to go stale
    with open(filename) as f:
        code = compile(f.read(), filename, "exec")
    module = types.ModuleType(name_of_function)
    module.__file__ = filename
    exec(code, module.__dict__)
    return getattr(module, name_of_function)
