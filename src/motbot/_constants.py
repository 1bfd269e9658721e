"""Internal constants shared across the package."""

USER_AGENT = "motbot/1.0"

TELEGRAM_API_URL = "https://api.telegram.org"
MOT_BASE_URL = "https://history.mot.api.gov.uk/v1/trade/vehicles"
MOT_TOKEN_URL = "https://login.microsoftonline.com/a455b827-244f-4c97-b5b4-ce5d13b4d00c/oauth2/v2.0/token"
MOT_SCOPE = "https://tapi.dvsa.gov.uk/.default"
VES_BASE_URL = "https://driver-vehicle-licensing.api.gov.uk/vehicle-enquiry/v1/vehicles"

#: Telegram's hard limit for one text message.
MAX_MESSAGE_LENGTH = 4096

#: Source tags used in logs and :class:`~motbot.exceptions.UpstreamFetchError`.
MOT_SOURCE = "MOT"
VES_SOURCE = "VES"

# ------------------------------------------------------------------
# User-facing texts
# ------------------------------------------------------------------

WELCOME_TEXT = (
    "Welcome to the MOT Checker Bot! Send me a UK vehicle registration number to check its MOT history."
)
HELP_TEXT = "Simply send me a UK vehicle registration number to check its MOT history."
LOOKUP_APOLOGY_TEXT = "Sorry, I couldn't process that registration number. Please try again."
GENERIC_APOLOGY_TEXT = "Sorry, something went wrong. Please try again later."
ADMIN_ONLY_TEXT = "Sorry, this command is only available to administrators."
