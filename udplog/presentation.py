"""HTML rendering of query results."""

from html import escape
from typing import Iterable, Optional

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Logs</title></head>
<body>
<h1>Logs</h1>
<form method='GET'>
<input type='text' name='search' placeholder='Search logs' value='{term}'/>
<input type='submit' value='Search'/>
<input type='button' value='Refresh' onclick='window.location.reload();'/>
</form>
<hr>
{lines}
</body>
</html>
"""


def render_logs_page(term: Optional[str], records: Iterable[str]) -> str:
    """Render the log page: search form pre-filled with ``term``, then one line per record."""
    lines = ''.join(f'{escape(record)}<br>\n' for record in records)
    return PAGE_TEMPLATE.format(term=escape(term or '', quote=True), lines=lines)
