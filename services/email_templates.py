from typing import Dict, Tuple


def welcome(data: Dict[str, str]) -> Tuple[str, str]:
    subject = "Welcome to Book Exchange Platform"
    html = f"""
      <h1>Welcome to Book Exchange Platform!</h1>
      <p>Hi {data['name']},</p>
      <p>Thank you for registering with Book Exchange Platform. We're excited to have you on board!</p>
      <p>You can now:</p>
      <ul>
        <li>List your books for exchange</li>
        <li>Browse available books</li>
        <li>Request exchanges</li>
      </ul>
      <p>Happy reading!</p>
    """
    return subject, html


def password_reset(data: Dict[str, str]) -> Tuple[str, str]:
    subject = "Password Reset Request"
    html = f"""
      <h1>Password Reset Request</h1>
      <p>You have requested to reset your password.</p>
      <p>Your OTP is: <strong>{data['otp']}</strong></p>
      <p>This OTP will expire in 1 hour.</p>
      <p>If you didn't request this, please ignore this email.</p>
    """
    return subject, html


TEMPLATES = {
    "welcome": welcome,
    "passwordReset": password_reset,
}


def render(template: str, data: Dict[str, str]) -> Tuple[str, str]:
    try:
        builder = TEMPLATES[template]
    except KeyError:
        raise ValueError(f"Unknown email template: {template}")
    return builder(data)
