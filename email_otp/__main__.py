"""Run the API with `python -m email_otp`."""

import uvicorn


def main() -> None:
    uvicorn.run("email_otp.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
