from email_otp.api.routes.challenge import router as challenge_router

__all__ = ["challenge_router"]
