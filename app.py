import logging
from functools import wraps
from flask import Flask, Response, jsonify, request
from utils.file_manager import ensure_defaults, get_config
from models.app_state import AppState
from models.sales import unique_customers, get_sale
from services.export import to_csv, to_tsv, export_filename

logging.basicConfig(level=logging.INFO)
LOG = logging.getLogger(__name__)

def create_app(state: AppState = None) -> Flask:
    ensure_defaults()
    app = Flask(__name__)
    state = state or AppState()
    state.load()
    app.config["STATE"] = state

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if not state.logged_in:
                return jsonify({"ok": False, "error": "Login required."}), 401
            return view(*args, **kwargs)
        return wrapper

    def _filters():
        return {"month": request.args.get("month"), "payment": request.args.get("payment")}

    # -------- Session --------
    @app.post("/login")
    def login():
        data = request.get_json(force=True, silent=True) or {}
        user = state.login(data.get("email", ""), str(data.get("pin", "")))
        if not user:
            return jsonify({"ok": False, "error": "Credenciales incorrectas"}), 401
        return jsonify({"ok": True, "user": user})

    @app.post("/logout")
    def logout():
        state.logout()
        return jsonify({"ok": True})

    @app.get("/session")
    def session_get():
        return jsonify({
            "ok": True,
            "user": state.user,
            "filters": {"month": state.month_filter, "payment": state.payment_filter, "group_by": state.group_by},
        })

    @app.post("/filters")
    @login_required
    def filters_post():
        data = request.get_json(force=True, silent=True) or {}
        try:
            state.set_filters(data.get("month"), data.get("payment"), data.get("group_by"))
        except ValueError as e:
            return jsonify({"ok": False, "error": str(e)}), 400
        return session_get()

    # -------- Sales --------
    @app.get("/sales")
    @login_required
    def sales_list():
        return jsonify({"ok": True, "sales": state.filtered_sales(**_filters())})

    @app.post("/sales")
    @login_required
    def sales_save():
        data = request.get_json(force=True, silent=True) or {}
        try:
            sale = state.save_sale(data)
        except ValueError as e:
            return jsonify({"ok": False, "error": str(e)}), 400
        return jsonify({"ok": True, "sale": sale})

    @app.get("/sales/<sale_id>")
    @login_required
    def sales_get(sale_id):
        sale = get_sale(sale_id)
        if sale is None:
            return jsonify({"ok": False, "error": f"Unknown sale: {sale_id}"}), 404
        return jsonify({"ok": True, "sale": sale})

    @app.delete("/sales/<sale_id>")
    @login_required
    def sales_delete(sale_id):
        state.delete_sale(sale_id)
        return jsonify({"ok": True})

    @app.get("/sales/summary")
    @login_required
    def sales_summary():
        return jsonify({"ok": True, "summary": state.summary(**_filters())})

    @app.get("/customers")
    @login_required
    def customers():
        return jsonify({"ok": True, "customers": unique_customers()})

    # -------- Report --------
    @app.get("/report")
    @login_required
    def report_get():
        try:
            rep = state.report(request.args.get("group_by"), **_filters())
        except ValueError as e:
            return jsonify({"ok": False, "error": str(e)}), 400
        return jsonify({"ok": True, "report": rep})

    # -------- Export --------
    @app.get("/export/csv")
    @login_required
    def export_csv():
        month = request.args.get("month") or state.month_filter
        body = to_csv(state.filtered_sales(**_filters()))
        filename = export_filename(month, get_config()["app_slug"])
        return Response(
            body.encode("utf-8"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.get("/export/tsv")
    @login_required
    def export_tsv():
        return Response(to_tsv(state.filtered_sales(**_filters())), mimetype="text/tab-separated-values")

    # -------- Assistant --------
    @app.post("/assistant")
    @login_required
    def assistant_ask():
        data = request.get_json(force=True, silent=True) or {}
        try:
            reply = state.ask(data.get("question", ""), **_filters())
        except ValueError as e:
            return jsonify({"ok": False, "error": str(e)}), 400
        return jsonify({"ok": True, "reply": reply, "superseded": reply is None})

    @app.get("/assistant/history")
    @login_required
    def assistant_history():
        return jsonify({"ok": True, "messages": state.assistant.messages, "waiting": state.assistant.is_waiting})

    return app

if __name__ == "__main__":
    # Running directly: start Flask dev server
    create_app().run(host="0.0.0.0", port=5000, debug=True)
