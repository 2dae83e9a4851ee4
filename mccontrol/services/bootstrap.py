"""Application bootstrap/run helpers."""


def run_server(app, host, port, log_action, log_exception, boot_steps):
    """Run startup steps, then start the Flask server."""
    log_action("boot-start", command=f"host={host} port={port}")

    for step_name, step_func in boot_steps:
        try:
            step_func()
        except Exception as exc:
            log_exception(f"boot_step/{step_name}", exc)
            log_action("boot-failed", command=step_name, rejection_message=str(exc)[:500] or "startup step failed")
            raise

    log_action("boot-ready", command=f"host={host} port={port}")
    try:
        # Each SSE viewer holds a request thread for the life of its stream.
        app.run(host=host, port=port, threaded=True)
    except Exception as exc:
        log_exception("boot_step/app.run", exc)
        log_action("boot-failed", command="app.run", rejection_message=str(exc)[:500] or "web server startup failed")
        raise
