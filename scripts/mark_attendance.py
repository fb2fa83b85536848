"""
Kiosk check-in: sample the local webcam and post frames to /attendance/mark
until someone is recognized.

    python scripts/mark_attendance.py [--interval 1.5] [--attempts 20]
"""
import argparse
import os
import sys
import time

import requests
from dotenv import load_dotenv

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from face_attendance.exceptions import CameraUnavailable  # noqa: E402
from face_attendance.services.camera import CameraSource  # noqa: E402
from face_attendance.utils.image import encode_jpeg  # noqa: E402

load_dotenv()

SERVER_IP = os.getenv("SERVER_IP", "127.0.0.1")
SERVER_PORT = os.getenv("SERVER_PORT", "8000")
API_URL = f"http://{SERVER_IP}:{SERVER_PORT}/attendance/mark"


def run(camera_index: int, interval: float, attempts: int) -> int:
    camera = CameraSource(camera_index)
    try:
        with camera.open_camera() as stream:
            for attempt in range(1, attempts + 1):
                frame = camera.sample(stream)
                try:
                    response = requests.post(
                        API_URL,
                        files={"image": ("frame.jpg", encode_jpeg(frame), "image/jpeg")},
                        timeout=30,
                    )
                except requests.RequestException as e:
                    print(f" Connection Error: {e}")
                    return 1

                body = response.json()
                if response.status_code == 200 and body.get("status") == "success":
                    print(f" {body['message']} ({body['confidence']:.2f}%)")
                    return 0

                print(f"[{attempt}/{attempts}] {body.get('message') or body.get('detail')}")
                if body.get("reason") == "no_registered_users":
                    return 1
                time.sleep(interval)
    except CameraUnavailable as exc:
        print(f"Error: {exc.message}")
        return 1
    except KeyboardInterrupt:
        print("Cancelled.")
        return 1

    print("Gave up without a match.")
    return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Mark attendance from the local webcam.")
    parser.add_argument("--camera", type=int, default=int(os.getenv("CAMERA_INDEX", 0)))
    parser.add_argument("--interval", type=float, default=1.5)
    parser.add_argument("--attempts", type=int, default=20)
    args = parser.parse_args()
    raise SystemExit(run(args.camera, args.interval, args.attempts))
