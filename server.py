"""
NeuroGrid Server  –  Flask + Server-Sent Events
===============================================

Endpoints:
  POST /start        Start (or restart) an evolution run with a JSON config body
  POST /stop         Cancel the running evolution
  GET  /stream       SSE stream – one event per finished epoch
  GET  /status       Current run state as JSON

Run:
  python server.py
  # → http://localhost:5000
"""

import threading
import queue
import json

from flask import Flask, Response, request, jsonify

from config import GeneticWorldParams
from genetic_world import GeneticWorldRun

# ──────────────────────────────────────────────────────────────────────────────
app = Flask(__name__)

# Global run state
_run:         GeneticWorldRun | None = None
_run_thread:  threading.Thread | None = None
_epoch_queue  = queue.Queue(maxsize=200)   # holds dicts to stream
_run_lock     = threading.Lock()


# ──────────────────────────────────────────────────────────────────────────────
# CORS helper – allow a dev front-end (any origin) to call us
# ──────────────────────────────────────────────────────────────────────────────

@app.after_request
def add_cors(response):
    response.headers["Access-Control-Allow-Origin"]  = "*"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    return response

@app.route("/", methods=["OPTIONS"])
@app.route("/<path:p>", methods=["OPTIONS"])
def preflight(p=""):
    return Response(status=200)


# ──────────────────────────────────────────────────────────────────────────────
# Run thread
# ──────────────────────────────────────────────────────────────────────────────

def _push(out_q: queue.Queue, payload: dict):
    # Non-blocking put; drop oldest frame if queue full
    if out_q.full():
        try:
            out_q.get_nowait()
        except queue.Empty:
            pass
    out_q.put(payload)


def _run_worker(run: GeneticWorldRun, out_q: queue.Queue):
    """Run the evolution inline on this thread; push each epoch into the queue."""
    try:
        run.setup(start=False)
    except Exception as exc:
        _push(out_q, {"type": "error", "message": str(exc)})
    finally:
        snap = run.snapshot()
        _push(out_q, {
            "type":      "cancelled" if run.cancelled else "done",
            "epoch":     snap["current_epoch"],
            "bestScore": round(snap["best_score"], 4),
        })


def _epoch_payload(params: GeneticWorldParams, out_q: queue.Queue):
    def on_epoch(epoch, stats):
        _push(out_q, {
            "type":      "epoch",
            "epoch":     epoch,
            "numEpochs": params.num_epochs,
            "best":      round(stats["best"], 4),
            "mean":      round(stats["mean"], 4),
            "diversity": round(stats["diversity"], 4),
            "policy":    stats["policy"],
            "elapsedS":  stats["elapsed_s"],
        })
    return on_epoch


def _status_payload(run: GeneticWorldRun) -> dict:
    if run is None:
        return {"running": False, "phase": "", "currentEpoch": 0,
                "totalEpochs": 0, "bestScore": 0.0, "cfg": {}}
    snap = run.snapshot()
    best = snap["best_network"]
    payload = {
        "running":      snap["running"],
        "phase":        snap["phase"],
        "currentEpoch": snap["current_epoch"],
        "totalEpochs":  snap["total_epochs"],
        "bestScore":    snap["best_score"],
        "error":        snap["error"],
        "cfg":          run.params.as_dict(camel=True),
    }
    if best is not None:
        payload["bestKinds"] = best.kinds().tolist()
    if snap["simulation"] is not None:
        payload["simulation"] = snap["simulation"].snapshot()
    return payload


# ──────────────────────────────────────────────────────────────────────────────
# Routes
# ──────────────────────────────────────────────────────────────────────────────

@app.route("/start", methods=["POST"])
def start():
    global _run, _run_thread, _epoch_queue

    try:
        data = request.get_json(silent=True)
        params = GeneticWorldParams.from_dict(data if isinstance(data, dict) else {})
    except (TypeError, ValueError) as exc:
        return jsonify({"status": "error", "message": str(exc)}), 400

    with _run_lock:
        # Stop any running evolution
        if _run is not None:
            _run.cancel()
        if _run_thread and _run_thread.is_alive():
            _run_thread.join(timeout=3)

        _epoch_queue = queue.Queue(maxsize=200)
        _run = GeneticWorldRun(params,
                               on_epoch_complete=_epoch_payload(params, _epoch_queue))
        _run_thread = threading.Thread(
            target=_run_worker,
            args=(_run, _epoch_queue),
            daemon=True,
        )
        _run_thread.start()

    return jsonify({"status": "started", "cfg": params.as_dict(camel=True)})


@app.route("/stop", methods=["POST"])
def stop():
    with _run_lock:
        if _run is not None:
            _run.cancel()
    return jsonify({"status": "stopped"})


@app.route("/status", methods=["GET"])
def status():
    return jsonify(_status_payload(_run))


@app.route("/stream", methods=["GET"])
def stream():
    """SSE endpoint – clients subscribe and receive each epoch as an event."""
    out_q = _epoch_queue

    def event_gen():
        # Send a hello so the client knows it's connected
        yield "data: {\"type\": \"connected\"}\n\n"

        while True:
            try:
                payload = out_q.get(timeout=1)
                yield f"data: {json.dumps(payload)}\n\n"
                if payload.get("type") in ("done", "cancelled", "error"):
                    break
            except queue.Empty:
                # Keep-alive ping
                yield "data: {\"type\": \"ping\"}\n\n"

    return Response(
        event_gen(),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",    # disable nginx buffering if behind proxy
        },
    )


# ──────────────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    print("=" * 50)
    print("  NeuroGrid Server  →  http://localhost:5000")
    print("  SSE stream        →  http://localhost:5000/stream")
    print("=" * 50)
    app.run(host="0.0.0.0", port=5000, threaded=True, debug=False)
