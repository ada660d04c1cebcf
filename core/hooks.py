from flask import request, abort, current_app


# -------------------- 보안 훅 --------------------

def guard_payload_size():
    limit = current_app.config.get("MAX_PAYLOAD_BYTES") or 256 * 1024
    if request.content_length and request.content_length > limit:
        abort(413, description="請求內容過大。")


# -------------------- 400 디버그 로깅 --------------------

def log_bad_requests(resp):
    if resp.status_code == 400:
        current_app.logger.info(
            "[400] %s %s content_type=%s args=%s resp=%s",
            request.method,
            request.path,
            request.content_type,
            request.args.to_dict(),
            resp.get_data(as_text=True)[:500],
        )
    return resp


def register_hooks(app):
    app.before_request(guard_payload_size)
    app.after_request(log_bad_requests)
