#!/usr/bin/env python3
"""
Command-line interface for Rabla - dated Markdown posts to a static blog.
"""

import os
import sys
import argparse
import time
from typing import List, Optional
from . import __version__
from .core import Rabla, ERROR_POLICIES
from .exceptions import DirectoryAccessError
from .server import serve_directory
from .settings import RablaSettings

SAMPLE_POST = """# Hello, world

This is the first post. Put images in the `attachments/` folder next to
your posts and reference them on a line of their own, for example
`![](photo.png)`.

The last line of every post is its date.

01.01.2025
"""


def create_starter_structure(input_dir: str = 'posts') -> None:
    """Create an input directory with an attachments folder and a sample post."""
    current_dir = os.getcwd()

    for directory in [input_dir, os.path.join(input_dir, 'attachments')]:
        dir_path = os.path.join(current_dir, directory)
        if os.path.exists(dir_path):
            print(f"Directory already exists: {directory}")
        else:
            os.makedirs(dir_path, exist_ok=True)
            print(f"Created directory: {directory}")

    post_path = os.path.join(current_dir, input_dir, 'hello-world.md')
    if os.path.exists(post_path):
        print(f"Sample post already exists: {input_dir}/hello-world.md")
    else:
        with open(post_path, 'w', encoding='utf-8') as f:
            f.write(SAMPLE_POST)
        print(f"Created sample post: {input_dir}/hello-world.md")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Rabla - dated Markdown posts to a static blog')
    parser.add_argument('-i', '--input-dir', type=str,
                        help='Directory of .md posts with an attachments/ subdirectory')
    parser.add_argument('-o', '--output-dir', type=str,
                        help='Directory that receives <slug>/index.html for each post')
    parser.add_argument('-s', '--serve', action='store_true', default=None,
                        help='Serve the site directory after building')
    parser.add_argument('-p', '--port', type=int,
                        help='Port for --serve (default 8090)')
    parser.add_argument('--host', type=str,
                        help='Host for --serve (default localhost)')
    parser.add_argument('--site-dir', type=str,
                        help="Directory for index.html and style.css (default 'site')")
    parser.add_argument('--site-title', type=str,
                        help='Title of the index page')
    parser.add_argument('--templates', type=str,
                        help='Directory with single.html/index.html/style.css overrides')
    parser.add_argument('--on-error', type=str, choices=ERROR_POLICIES,
                        help='Abort the build on the first bad post, or skip it and continue')
    parser.add_argument('--log-dir', type=str,
                        help='Write a detailed build log to this directory')
    parser.add_argument('-v', '--verbose', action='store_true', default=None,
                        help='Show debug output')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file and posts directory')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Handle init command
    if args.init:
        settings_loader = RablaSettings()
        config_path = settings_loader.create_sample_config(args.init)
        print(f"Created sample configuration file: {config_path}")

        print("\nCreating starter posts directory...")
        create_starter_structure()

        print("\nRun 'rabla' to build your site.")
        return

    # Load settings from configuration file
    settings_loader = RablaSettings()
    settings_loader.load_settings()

    # Command line arguments take precedence
    args_dict = {k: v for k, v in vars(args).items() if v is not None and k != 'init'}
    final_settings = settings_loader.merge_with_args(args_dict)

    if not final_settings['input_dir'] or not final_settings['output_dir']:
        parser.error('--input-dir and --output-dir are required (or set input_dir/output_dir in rabla.yml)')

    overall_start_time = time.time()

    try:
        generator = Rabla(
            input_dir=os.path.expanduser(final_settings['input_dir']),
            output_dir=os.path.expanduser(final_settings['output_dir']),
            site_dir=os.path.expanduser(final_settings['site_dir']),
            site_title=final_settings['site_title'],
            templates_dir=final_settings['templates'],
            on_error=final_settings['on_error'],
            log_dir=final_settings['log_dir'],
            verbose=bool(final_settings['verbose']),
        )

        generator.build()

        # Show build statistics
        total_time = time.time() - overall_start_time
        generator.logger.info(f"Site build completed in {total_time:.6f} seconds.")
        generator.logger.info(f"Total posts generated: {generator.posts_generated}")
        generator.logger.info(f"Total attachments copied: {generator.attachments_copied}")
        if generator.failures:
            generator.logger.info(f"Total posts skipped: {len(generator.failures)}")

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if final_settings['serve']:
        try:
            serve_directory(generator.site_dir, final_settings['port'], final_settings['host'])
        except (OSError, DirectoryAccessError) as e:
            print(f"Error: could not start preview server: {e}", file=sys.stderr)
            sys.exit(1)


if __name__ == '__main__':
    main()
