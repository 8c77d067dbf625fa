"""ReaperConverter - converts REAPER projects to DAWproject and back.

Run: python main.py
"""

from reaperconverter.gui.app import ReaperConverterApp
from reaperconverter.utils.log_setup import configure_logging


def main():
    configure_logging()
    app = ReaperConverterApp()
    app.run()


if __name__ == "__main__":
    main()
