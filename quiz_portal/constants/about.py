"""Static metadata describing QuizPortal."""

APP_NAME = "QuizPortal"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "QuizPortal runs timed student quiz attempts: answers are saved as the student works, "
    "time spent away from the quiz is tracked, and attempts are scored once on submission."
)
