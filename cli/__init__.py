"""Story Reel Builder CLI"""

import click
from dotenv import load_dotenv
from .build import build_cmd
from .stories import list_cmd
from .status import check_cmd
from .serve import serve_cmd

# Load .env file at CLI startup
load_dotenv()


@click.group()
@click.version_option(version="0.1.0")
def main():
    """Story Reel Builder - Narrated image stories to vertical video

    \b
    Quick Start:
      storyreel check
      storyreel build <STORY_ID>

    \b
    Commands:
      build    Build a story's Final Video
      list     List stories and their build status
      check    Verify ffmpeg/ffprobe and configuration
      serve    Run the HTTP API
    """
    pass


main.add_command(build_cmd, name="build")
main.add_command(list_cmd, name="list")
main.add_command(check_cmd, name="check")
main.add_command(serve_cmd, name="serve")


if __name__ == "__main__":
    main()
