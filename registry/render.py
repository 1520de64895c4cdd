from __future__ import annotations

from typing import Iterable
from urllib.parse import quote

from jinja2 import Environment, select_autoescape

_LISTING_TEMPLATE = """<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8" />
    <title>{{ title }}</title>
  </head>
  <body>
    <h1>{{ title }}</h1>
    <section id="content">
      <ul>
{%- for href, name in entries %}
        <li><a href="{{ href }}">{{ name }}</a></li>
{%- endfor %}
      </ul>
    </section>
  </body>
</html>
"""

_env = Environment(autoescape=select_autoescape(default_for_string=True, default=True))
_listing = _env.from_string(_LISTING_TEMPLATE)


def entry_href(prefix: str, name: str) -> str:
    return quote("/" + prefix + name, safe="/@")


def render_listing(title: str, prefix: str, entries: Iterable[str]) -> str:
    # the entry set is unordered; sort for a stable page
    rows = [(entry_href(prefix, name), name) for name in sorted(entries)]
    return _listing.render(title=title, entries=rows)
