"""Product naming shared by the CLI and report writers."""

PRODUCT_NAME = "BootMedic"
CLI_PRIMARY_COMMAND = "bootmedic"
