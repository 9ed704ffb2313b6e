"""
End-to-end example: animate a local image and save the video.

Export the Cookie header of a logged-in app.leonardo.ai tab to cookie.txt,
then run:
    .venv/bin/python example.py cat.png
"""
import logging
import sys

import leonai
from leonai import FileCookieStore, GenerationFailedError, Leonardo, LeonardoError

# ── logging ──────────────────────────────────────────────────────────────────
# The client emits logs under the "leonai" logger.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(name)s  %(levelname)s  %(message)s",
    datefmt="%H:%M:%S",
)
# Uncomment to see every HTTP request/response:
# logging.getLogger("leonai").setLevel(logging.DEBUG)

IMAGE_PATH = sys.argv[1] if len(sys.argv) > 1 else "cat.png"
OUTPUT_PATH = "motion.mp4"

print(f"\nleonai v{leonai.__version__}")
print("=" * 60)

# ── step 1 · authenticate ────────────────────────────────────────────────────
print("\n[1/3] Authenticating with cookie.txt")
with Leonardo(cookie_store=FileCookieStore("cookie.txt")) as client:
    print(f"      → user_id = {client.tokens.user_id!r}")

    # ── step 2 · upload + generate ───────────────────────────────────────────
    print(f"\n[2/3] Animating {IMAGE_PATH} (usually 1-3 min)…")
    try:
        result = client.motion.create(IMAGE_PATH, motion_strength=5)
    except GenerationFailedError as e:
        print(f"      ✗ Generation failed: status={e.status}  id={e.generation_id}")
        raise SystemExit(1)
    except LeonardoError as e:
        print(f"      ✗ {e}")
        raise SystemExit(1)
    print(f"      → generation_id={result.generation_id!r}")
    print(f"      → url={result.url}")

    # ── step 3 · download ────────────────────────────────────────────────────
    print(f"\n[3/3] Downloading to {OUTPUT_PATH}")
    client.download(result.url, OUTPUT_PATH)
    print("      → saved")

print("\n" + "=" * 60)
print("Done.")
