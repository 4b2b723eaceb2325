"""
A web reporter built with Flask. It reads the in-memory state of the
running watchers and displays it on a web page, with a JSON variant
under /status. Nothing is stored on disk.
"""

from datetime import datetime
from typing import List

from flask import Flask, abort, jsonify, render_template_string

HTML_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>CI Watcher</title>
    <link href="https://cdn.jsdelivr.net/npm/bootstrap@5.1.3/dist/css/bootstrap.min.css" rel="stylesheet">
    <style>
        body { background-color: #f8f9fa; padding: 20px; }
        .container { max-width: 1200px; margin: 0 auto; }
        .services { background: white; border-radius: 8px; padding: 20px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); }
        code { font-size: 0.85em; }
    </style>
</head>
<body>
    <div class="container">
        <h1 class="mb-4">CI Watcher</h1>
        <div class="services">
            {% if services %}
            <table class="table table-hover">
                <thead>
                    <tr><th>Service</th><th>Branch</th><th>Local</th><th>Remote</th>
                        <th>Last check</th><th>Jobs</th><th>Last job</th></tr>
                </thead>
                <tbody>
                {% for s in services %}
                    <tr>
                        <td><a href="/status/{{ s.name }}">{{ s.name }}</a></td>
                        <td>{{ s.branch }}</td>
                        <td><code>{{ s.local[:12] or "-" }}</code></td>
                        <td><code>{{ s.remote[:12] or "-" }}</code></td>
                        <td>{{ s.last_checked or "never" }}</td>
                        <td>{{ s.jobs_run }}</td>
                        <td>
                        {% if s.last_job %}
                            <span class="badge bg-{{ 'success' if s.last_job.succeeded else 'danger' }}">
                                {{ "passed" if s.last_job.succeeded else "failed" }}
                            </span>
                        {% else %}-{% endif %}
                        </td>
                    </tr>
                {% endfor %}
                </tbody>
            </table>
            {% else %}
                <div class="alert alert-info">No services configured</div>
            {% endif %}
        </div>
    </div>
</body>
</html>
"""


def watcher_status(w) -> dict:
    """Extract display metadata from a watcher"""
    last_job = None
    if w.last_job is not None:
        last_job = {
            "pulled": w.last_job.pulled,
            "succeeded": w.last_job.succeeded,
            "commands": [{"command": c.command, "ok": c.ok} for c in w.last_job.commands],
        }
    checked = None
    if w.last_checked is not None:
        checked = datetime.fromtimestamp(w.last_checked).isoformat(timespec="seconds")

    return {
        "name": w.name,
        "branch": w.service.branch,
        "path": w.service.path,
        "local": w.last_local,
        "remote": w.last_remote,
        "last_checked": checked,
        "jobs_run": w.jobs_run,
        "last_job": last_job,
    }


def create_app(watchers: List) -> Flask:
    app = Flask(__name__)
    by_name = {w.name: w for w in watchers}

    @app.route("/")
    def index():
        services = [watcher_status(w) for w in watchers]
        return render_template_string(HTML_TEMPLATE, services=services)

    @app.route("/status")
    def status():
        return jsonify([watcher_status(w) for w in watchers])

    @app.route("/status/<name>")
    def service_status(name):
        w = by_name.get(name)
        if w is None:
            abort(404, description=f"Service '{name}' not found")
        return jsonify(watcher_status(w))

    @app.errorhandler(404)
    def page_not_found(e):
        return jsonify({"error": e.description}), 404

    return app
