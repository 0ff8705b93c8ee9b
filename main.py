"""Entrypoint launching the Textual viewer."""

from video_library.config import DEFAULT_CONFIG_PATH, AppConfig
from video_library.tui import LibraryApp


def main():
    # Launch the Textual UI
    app = LibraryApp(AppConfig.from_file(DEFAULT_CONFIG_PATH))
    app.run()


if __name__ == "__main__":
    main()
