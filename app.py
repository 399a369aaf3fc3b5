import logging
import os

from flask import Flask, redirect, url_for

from tinydb import TinyDB
from tinydb.storages import MemoryStorage

from plonkish_routes import plonkish_bp, init_plonkish_bp


DB_PATH = os.environ.get("PLONKISH_DB_PATH", "db.json")
SECRET_KEY = os.environ.get("PLONKISH_SECRET_KEY", "key")

logging.basicConfig(
    level=os.environ.get("PLONKISH_LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

if DB_PATH == ":memory:":
    DB = TinyDB(storage=MemoryStorage)  # Memory DB
else:
    DB = TinyDB(DB_PATH)                # Storage DB

app = Flask(__name__)
app.secret_key = SECRET_KEY

init_plonkish_bp(DB.table("plonkish"))
app.register_blueprint(plonkish_bp)


@app.route("/")
def main():
    return redirect(url_for("plonkish.circuit_page"))
