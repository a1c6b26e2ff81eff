# -*- coding: utf-8 -*-
import os

from flask import Flask, Response, jsonify, request

from .wsgi_adapter import handler

# --- Config ------------------------------------------------------------------
app = Flask(__name__)
# The load balancer refuses request bodies over 1MB before we ever see them
app.config["MAX_CONTENT_LENGTH"] = 1024 * 1024

GREETING = os.environ.get("GREETING", "Hello")

# Not UTF-8, goes out base64-encoded
PIXEL = bytes([0xFF, 0xD8, 0xFF, 0xE0, 0x00, 0x10])


# --- Routes ------------------------------------------------------------------
@app.get("/hello")
def hello():
    return GREETING


@app.route("/echo", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
def echo():
    data = request.get_data()
    return jsonify({
        "method": request.method,
        "path": request.path,
        "args": request.args.to_dict(flat=False),
        "host": request.host,
        "scheme": request.scheme,
        "content_length": request.content_length,
        "content_type": request.content_type,
        "body": data.decode("utf-8", errors="replace"),
        "headers": {k: v for k, v in request.headers.items()},
    })


@app.get("/pixel")
def pixel():
    return Response(PIXEL, mimetype="image/jpeg")


@app.get("/deadline")
def deadline():
    ctx = request.environ.get("alb.context")
    if ctx is None or not hasattr(ctx, "get_remaining_time_in_millis"):
        return jsonify({"remaining_ms": None})
    return jsonify({"remaining_ms": ctx.get_remaining_time_in_millis()})


# Lambda entry point
lambda_handler = handler(app)

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
