"""Endpoint clients for the MOT History, Vehicle Enquiry and Telegram Bot APIs."""
