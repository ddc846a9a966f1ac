"""Allow running as: python -m arbitrageur"""
from arbitrageur.main import cli_main

if __name__ == "__main__":
    cli_main()
