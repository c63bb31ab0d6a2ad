"""TutorHub credit transaction service."""
