from flask import Blueprint, current_app

bp = Blueprint("health", __name__)

@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
            app:
              type: string
              example: Pet Service API
    """
    return {"status": "ok", "app": current_app.config["PROJECT_NAME"]}, 200
