# Example:
#   export MongoDb-Connection-String="mongodb+srv://..."
#   python -m Weekly_Winners --week-offset 1
from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv())

from Weekly_Winners import cli_main  # noqa: E402

cli_main()
