"""
Enroll a person from this machine's webcam through the running API.

    python scripts/register_face.py --name "Jane Doe" --email jane@example.com
"""
import argparse
import os
import sys

import requests
from dotenv import load_dotenv

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from face_attendance.exceptions import CameraUnavailable  # noqa: E402
from face_attendance.services.camera import CameraSource  # noqa: E402
from face_attendance.utils.image import encode_jpeg  # noqa: E402

load_dotenv()

SERVER_IP = os.getenv("SERVER_IP", "127.0.0.1")
SERVER_PORT = os.getenv("SERVER_PORT", "8000")
BASE_URL = f"http://{SERVER_IP}:{SERVER_PORT}"


def enroll(name: str, email: str, camera_index: int) -> int:
    print("--------------------------------------------------")
    print("FACE REGISTRATION CLIENT")
    print(f"Target Server: {BASE_URL}")
    print("--------------------------------------------------")

    camera = CameraSource(camera_index)
    descriptor = None
    try:
        with camera.open_camera() as stream:
            while descriptor is None:
                answer = input("Press Enter to capture (q to quit): ").strip().lower()
                if answer == "q":
                    print("Cancelled.")
                    return 1
                frame = camera.sample(stream)
                try:
                    response = requests.post(
                        f"{BASE_URL}/users/capture",
                        files={"image": ("frame.jpg", encode_jpeg(frame), "image/jpeg")},
                        timeout=30,
                    )
                except requests.RequestException as e:
                    print(f" Connection Error: {e}")
                    return 1
                body = response.json()
                if response.status_code != 200:
                    print(f" {body.get('detail')}")
                    continue
                descriptor = body["face_descriptor"]
                print(f" {body['message']}")
    except CameraUnavailable as exc:
        print(f"Error: {exc.message}")
        return 1

    try:
        response = requests.post(
            f"{BASE_URL}/users/register",
            json={"name": name, "email": email, "face_descriptor": descriptor},
            timeout=10,
        )
    except requests.RequestException as e:
        print(f" Connection Error: {e}")
        return 1
    body = response.json()
    if response.status_code == 200:
        print(f" Success! {body['message']}")
        return 0
    print(f" Failed: {body.get('detail')}")
    return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Register a face from the local webcam.")
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--camera", type=int, default=int(os.getenv("CAMERA_INDEX", 0)))
    args = parser.parse_args()
    raise SystemExit(enroll(args.name.strip(), args.email.strip(), args.camera))
