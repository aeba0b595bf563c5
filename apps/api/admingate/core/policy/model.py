"""
Casbin model and enforcer construction.
"""

import casbin
from casbin.model import Model
from casbin.persist import Adapter

# Subjects are principal ids; roles are granted through g lines.
# Objects are path patterns (keyMatch2, e.g. /api/v1/domains/:id) and
# "*" as the action grants every method.
DEFAULT_MODEL = """
[request_definition]
r = sub, obj, act

[policy_definition]
p = sub, obj, act

[role_definition]
g = _, _

[policy_effect]
e = some(where (p.eft == allow))

[matchers]
m = g(r.sub, p.sub) && keyMatch2(r.obj, p.obj) && (r.act == p.act || p.act == "*")
"""


def build_model(model_path: str = "") -> Model:
    """Load the model file when given, the built-in RBAC model otherwise."""
    model = Model()
    if model_path:
        model.load_model(model_path)
    else:
        model.load_model_from_text(DEFAULT_MODEL)
    return model


def build_enforcer(adapter: Adapter, model_path: str = "") -> casbin.Enforcer:
    """
    Create the enforcer bound to ``adapter``.

    The adapter must already hold its policy snapshot; the enforcer loads
    it immediately.
    """
    return casbin.Enforcer(build_model(model_path), adapter)
