"""
Jinja2 rendering of the JavaScript snippets and Node driver scripts.

Templates live in ``workerpack/templates``. Autoescaping is off: the output
is JavaScript, and every value that ends up inside it is either a number or
passes through the ``tojson`` filter.
"""

from functools import lru_cache

from jinja2 import Environment, PackageLoader, StrictUndefined


@lru_cache(maxsize=1)
def get_environment() -> Environment:
    return Environment(
        loader=PackageLoader("workerpack", "templates"),
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def render(template_name: str, **context) -> str:
    """Render a template from the package ``templates`` directory."""
    return get_environment().get_template(template_name).render(**context)
