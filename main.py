import asyncio

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from formrelay import load_config, ping, relay

app = FastAPI()

# the custom form is served from another origin (WordPress, static hosting)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# === CONFIG SECTION ===
CONFIG = load_config()


def get_config():
    return CONFIG


def get_session():
    # None lets relay() fall back to the requests module
    return None


def _submission_from_form(form):
    submission = {}
    for key in form.keys():
        values = [v for v in form.getlist(key) if isinstance(v, str)]
        if not values:
            continue
        submission[key] = values[0] if len(values) == 1 else values
    return submission


# === ROUTES ===
@app.get("/", response_class=PlainTextResponse)
def liveness():
    return str(ping())


@app.post("/", response_class=PlainTextResponse)
async def submit_form(request: Request, config=Depends(get_config), session=Depends(get_session)):
    try:
        form = await request.form()
    except Exception as e:
        return f"ERR: {e}"

    submission = _submission_from_form(form)
    result = await asyncio.get_running_loop().run_in_executor(
        None, relay, submission, config, session
    )
    return str(result)
