"""Flask web application for VibeMatch."""

import logging
import os

from config import LLM_PROVIDER, LOG_LEVEL
from vibematch.web import create_app

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()


if __name__ == '__main__':
    # Suggestions degrade to an empty list without a key, so only warn
    if LLM_PROVIDER == "openai" and not os.environ.get('OPENAI_API_KEY'):
        print("Warning: OPENAI_API_KEY environment variable not set")
    if LLM_PROVIDER == "gemini" and not os.environ.get('GEMINI_API_KEY') and not os.environ.get('GOOGLE_API_KEY'):
        print("Warning: GEMINI_API_KEY or GOOGLE_API_KEY environment variable not set")

    port = int(os.environ.get('PORT', 5000))
    app.run(debug=False, host='0.0.0.0', port=port)
