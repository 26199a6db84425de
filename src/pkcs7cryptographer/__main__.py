"""Allow ``python -m pkcs7cryptographer``."""

from pkcs7cryptographer.cli.main import main

main()
