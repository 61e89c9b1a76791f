"""
Run the Mintscan API and scanner with uvicorn.
"""
import uvicorn

from mintscan.config import Config


def main():
    uvicorn.run("mintscan.main:app", host=Config.HOST, port=Config.PORT, log_level=Config.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
