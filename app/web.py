"""HTML pages for the group web interface and the add-from-Stremio result."""

from __future__ import annotations

import re
from html import escape
from textwrap import dedent
from typing import Mapping, Sequence

from .config import Settings
from .services.store import GroupState, StoredContent

PLACEHOLDER_RE = re.compile(r"__[A-Z_]+__")


BASE_STYLE = dedent(
    """
        :root {
            color-scheme: dark;
            font-family: 'Inter', 'Segoe UI', system-ui, -apple-system, sans-serif;
            --surface: #141414;
            --surface-strong: #1f1f1f;
            --text-primary: #f5f5f5;
            --text-muted: #a6a6a6;
            --outline: #2b2b2b;
            --success: #3ddc84;
            --warning: #f5c542;
            --error: #ff6b6b;
            background: #000000;
            color: var(--text-primary);
        }
        * { box-sizing: border-box; }
        body { margin: 0; min-height: 100vh; background: #000000; }
        main { max-width: 880px; margin: 0 auto; padding: 2.5rem 1.25rem 4rem; }
        header { text-align: center; margin-bottom: 2rem; }
        section {
            background: var(--surface);
            border: 1px solid var(--outline);
            border-radius: 16px;
            padding: 1.5rem;
            margin-bottom: 1.5rem;
        }
        h2 { margin-top: 0; font-size: 1.15rem; }
        input, button {
            font: inherit;
            padding: 0.6rem 0.8rem;
            border-radius: 10px;
            border: 1px solid var(--outline);
            background: var(--surface-strong);
            color: var(--text-primary);
        }
        button { cursor: pointer; }
        .row { display: flex; gap: 0.5rem; flex-wrap: wrap; margin-bottom: 0.75rem; }
        .row input { flex: 1 1 12rem; }
        .muted { color: var(--text-muted); }
        .status { text-align: center; font-size: 1.1rem; white-space: pre-line; }
        .status.success { color: var(--success); }
        .status.warning { color: var(--warning); }
        .status.error { color: var(--error); }
        ul.titles { list-style: none; padding: 0; margin: 0; }
        ul.titles li {
            display: flex;
            justify-content: space-between;
            align-items: center;
            padding: 0.5rem 0;
            border-bottom: 1px solid var(--outline);
        }
        code { word-break: break-all; }
    """
)


HOME_TEMPLATE = dedent(
    """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>__APP_NAME__</title>
    <style>__STYLE__</style>
</head>
<body>
<main>
    <header>
        <h1>__APP_NAME__</h1>
        <p class="muted">One shared movie and series list for your group, right inside Stremio.</p>
    </header>
    <section id="create">
        <h2>Create a group</h2>
        <div class="row">
            <input id="create-name" placeholder="Group name" />
            <input id="create-password" type="password" placeholder="Password" />
            <button id="create-button">Create</button>
        </div>
    </section>
    <section id="join">
        <h2>Join a group</h2>
        <div class="row">
            <input id="join-id" placeholder="Group ID" />
            <input id="join-password" type="password" placeholder="Password" />
            <button id="join-button">Join</button>
        </div>
        <p class="status" id="status"></p>
    </section>
    <section id="group" hidden>
        <h2 id="group-name"></h2>
        <p class="muted">Addon URL: <code id="addon-url"></code></p>
        <div class="row">
            <input id="content-id" placeholder="tt0111161, an IMDb URL or a Kitsu ID" />
            <button id="add-button">Add</button>
        </div>
        <h2>Movies</h2>
        <ul class="titles" id="movies"></ul>
        <h2>Series</h2>
        <ul class="titles" id="series"></ul>
    </section>
</main>
<script>
(function() {
    const statusEl = document.getElementById('status');
    let current = null;
    let socket = null;

    function setStatus(message, kind) {
        statusEl.textContent = message || '';
        statusEl.className = 'status ' + (kind || '');
    }

    async function api(path, options) {
        const response = await fetch(path, Object.assign({
            headers: { 'Content-Type': 'application/json' }
        }, options || {}));
        let data = {};
        try { data = await response.json(); } catch (err) { data = {}; }
        if (!response.ok) {
            throw new Error(data.error || ('Request failed with status ' + response.status));
        }
        return data;
    }

    function renderList(entries) {
        const lists = { movie: document.getElementById('movies'), series: document.getElementById('series') };
        lists.movie.innerHTML = '';
        lists.series.innerHTML = '';
        entries.forEach(function(entry) {
            const item = document.createElement('li');
            const label = document.createElement('span');
            label.textContent = entry.title;
            const remove = document.createElement('button');
            remove.textContent = 'Remove';
            remove.addEventListener('click', function() { removeEntry(entry.id); });
            item.appendChild(label);
            item.appendChild(remove);
            (lists[entry.type] || lists.movie).appendChild(item);
        });
    }

    async function refresh() {
        if (!current) { return; }
        renderList(await api('/api/groups/' + current.groupId + '/content'));
    }

    function connect(groupId) {
        if (socket) { socket.close(); }
        const scheme = window.location.protocol === 'https:' ? 'wss://' : 'ws://';
        socket = new WebSocket(scheme + window.location.host + '/ws/groups/' + groupId);
        socket.onmessage = function(message) {
            const event = JSON.parse(message.data);
            if (event.type === 'content-added') {
                setStatus('"' + event.payload.title + '" was added.', 'success');
                refresh();
            } else if (event.type === 'content-removed') {
                setStatus('"' + event.payload.title + '" was removed.', 'warning');
                refresh();
            }
        };
    }

    function enter(group) {
        current = group;
        document.getElementById('group').hidden = false;
        document.getElementById('group-name').textContent = group.name;
        document.getElementById('addon-url').textContent = group.addonUrl;
        connect(group.groupId);
        refresh();
    }

    async function removeEntry(entryId) {
        try {
            const result = await api('/api/groups/' + current.groupId + '/content/' + entryId, { method: 'DELETE' });
            setStatus(result.message, 'warning');
        } catch (err) {
            setStatus(err.message, 'error');
        }
    }

    document.getElementById('create-button').addEventListener('click', async function() {
        try {
            enter(await api('/api/groups', {
                method: 'POST',
                body: JSON.stringify({
                    name: document.getElementById('create-name').value,
                    password: document.getElementById('create-password').value
                })
            }));
            setStatus('Group created.', 'success');
        } catch (err) {
            setStatus(err.message, 'error');
        }
    });

    document.getElementById('join-button').addEventListener('click', async function() {
        const groupId = document.getElementById('join-id').value.trim();
        try {
            enter(await api('/api/groups/' + groupId + '/join', {
                method: 'POST',
                body: JSON.stringify({ password: document.getElementById('join-password').value })
            }));
            setStatus('Joined group.', 'success');
        } catch (err) {
            setStatus(err.message, 'error');
        }
    });

    document.getElementById('add-button').addEventListener('click', async function() {
        const input = document.getElementById('content-id');
        try {
            const result = await api('/api/groups/' + current.groupId + '/content', {
                method: 'POST',
                body: JSON.stringify({ contentId: input.value })
            });
            setStatus(result.message, 'success');
            input.value = '';
        } catch (err) {
            setStatus(err.message, 'error');
        }
    });
})();
</script>
</body>
</html>
"""
)


RESULT_TEMPLATE = dedent(
    """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>__TITLE__</title>
    <style>__STYLE__</style>
</head>
<body>
<main>
    <header>
        <h1>__GROUP_NAME__</h1>
    </header>
    <section>
        <p class="status __STATUS_CLASS__">__STATUS_MESSAGE__</p>
    </section>
    <section>
        <h2>Movies (__MOVIE_COUNT__)</h2>
        <ul class="titles">__MOVIES__</ul>
    </section>
    <section>
        <h2>Series (__SERIES_COUNT__)</h2>
        <ul class="titles">__SERIES__</ul>
    </section>
    <p class="muted" style="text-align: center">You can close this window and return to Stremio.</p>
</main>
</body>
</html>
"""
)


NOT_FOUND_TEMPLATE = dedent(
    """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Group Not Found</title>
    <style>__STYLE__</style>
</head>
<body>
<main>
    <section>
        <p class="status error">Group Not Found</p>
        <p class="muted" style="text-align: center">The group you're looking for doesn't exist.</p>
    </section>
</main>
</body>
</html>
"""
)


def render_home_page(settings: Settings) -> str:
    """Return the landing page used to create, join and manage a group."""

    return _fill(
        HOME_TEMPLATE,
        {
            "__STYLE__": BASE_STYLE,
            "__APP_NAME__": escape(settings.app_name),
        },
    )


def describe_result(
    *,
    added: str | None = None,
    duplicate: bool = False,
    existing: str | None = None,
    error: str | None = None,
) -> tuple[str, str]:
    """Return the status message and CSS class for the result page."""

    if error:
        return f"Failed to add content: {error}", "error"
    if duplicate or existing:
        title = existing or added or "content"
        return f'"{title}"\nis already in your group list', "warning"
    if added:
        return f'"{added}"\nwas successfully added to your group!', "success"
    return "Welcome to your group page!", "info"


def render_result_page(
    group: GroupState,
    entries: Sequence[StoredContent],
    *,
    added: str | None = None,
    duplicate: bool = False,
    existing: str | None = None,
    error: str | None = None,
) -> str:
    """Return the page shown after adding a title from inside Stremio."""

    message, status_class = describe_result(
        added=added, duplicate=duplicate, existing=existing, error=error
    )
    movies = [entry for entry in entries if entry.type == "movie"]
    series = [entry for entry in entries if entry.type == "series"]

    replacements = {
        "__STYLE__": BASE_STYLE,
        "__TITLE__": escape(f"{group.name} · Group List"),
        "__GROUP_NAME__": escape(group.name),
        "__STATUS_CLASS__": status_class,
        "__STATUS_MESSAGE__": escape(message),
        "__MOVIE_COUNT__": str(len(movies)),
        "__SERIES_COUNT__": str(len(series)),
        "__MOVIES__": _render_titles(movies),
        "__SERIES__": _render_titles(series),
    }
    return _fill(RESULT_TEMPLATE, replacements)


def render_not_found_page() -> str:
    return _fill(NOT_FOUND_TEMPLATE, {"__STYLE__": BASE_STYLE})


def _render_titles(entries: Sequence[StoredContent]) -> str:
    if not entries:
        return '<li class="muted">Nothing here yet.</li>'
    return "".join(
        f"<li><span>{escape(entry.title)}</span>"
        f"<span class=\"muted\">{escape(entry.imdb_id)}</span></li>"
        for entry in entries
    )


def _fill(template: str, replacements: Mapping[str, str]) -> str:
    # Single pass: substituted values are never scanned for placeholders.
    return PLACEHOLDER_RE.sub(
        lambda match: replacements.get(match.group(0), match.group(0)), template
    )
