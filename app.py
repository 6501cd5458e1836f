import io

from flask import Flask, request, send_file, abort, render_template

from cubemap import Cubemap, FACE_SUFFIXES
from errors import ConfigError, LoadError
from settings import SpheremapSettings
import codec
import spheremap

app = Flask(__name__)

REQUIRED_FIELDS = list(FACE_SUFFIXES.values())

# Upload-side caps so one request can't pin the server
MAX_OUTPUT_SIZE = 4096


@app.route("/", methods=["GET"])
def index():
    return render_template("index.html", fields=REQUIRED_FIELDS)


def settings_from_form(form):
    settings = SpheremapSettings.from_strings(aa=form.get("aa"), size=form.get("size"))
    if settings.output_size > MAX_OUTPUT_SIZE:
        raise ConfigError(f"Output size {settings.output_size} exceeds {MAX_OUTPUT_SIZE}")
    return settings


@app.route("/spheremap", methods=["POST"])
def convert():
    missing = [face for face in REQUIRED_FIELDS if face not in request.files]
    if missing:
        abort(400, f"Missing field: {', '.join(missing)}")

    try:
        settings = settings_from_form(request.form)
        cubemap = Cubemap.from_sources(request.files)
    except (ConfigError, LoadError) as e:
        app.logger.warning("Rejected upload: %s", e)
        abort(400, str(e))

    colors = spheremap.render(cubemap, settings)

    buf = io.BytesIO()
    codec.save_colors(colors, buf, format="BMP")
    buf.seek(0)

    return send_file(
        buf,
        mimetype="image/bmp",
        as_attachment=True,
        download_name="spheremap.bmp"
    )


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
