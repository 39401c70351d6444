import logging

from flask import Flask

from farm_importer import config
from farm_importer.api.routes import api

# ================================
# INIT
# ================================
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s:%(message)s")


def create_app() -> Flask:
    app = Flask(__name__)
    app.register_blueprint(api)
    return app


app = create_app()


# ================================
# START
# ================================
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=config.PORT)
