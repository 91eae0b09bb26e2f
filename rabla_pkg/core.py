import os
import shutil
import logging
from datetime import datetime

import mistune
from jinja2 import ChoiceLoader, Environment, FileSystemLoader, PackageLoader, TemplateError, TemplateNotFound

from .exceptions import (
    POST_ERRORS,
    AttachmentCopyError,
    DirectoryAccessError,
    EmptySlugError,
    RenderError,
    SlugCollisionError,
    SourceReadError,
    WriteError,
)
from .manifest import ManifestEntry, sort_manifest
from .parser import is_markdown_file, parse_post, sanitize_filename, title_from_filename

ATTACHMENTS_DIR = 'attachments'
ERROR_POLICIES = ('abort', 'skip')


def create_template_env(templates_dir=None):
    """Jinja2 environment using templates_dir first, then the packaged templates."""
    loaders = []
    if templates_dir:
        loaders.append(FileSystemLoader(templates_dir))
    loaders.append(PackageLoader('rabla_pkg', 'templates'))
    return Environment(loader=ChoiceLoader(loaders))


class PostProcessor:
    def __init__(self, input_dir, output_dir, env, markdown_parser=None):
        self.input_dir = input_dir
        self.output_dir = output_dir
        self.attachments_dir = os.path.join(input_dir, ATTACHMENTS_DIR)
        self.env = env
        self.logger = logging.getLogger('Rabla.PostProcessor')
        self.markdown_parser = markdown_parser or self.create_markdown_parser()
        self.claimed_slugs = {}
        self.attachments_copied = 0

    def markdown_filter(self, text):
        """Convert markdown text to HTML."""
        return self.markdown_parser(text)

    def create_markdown_parser(self):
        """Create a Mistune markdown parser with a custom renderer."""
        class CustomRenderer(mistune.HTMLRenderer):
            def __init__(self):
                super().__init__(escape=False)
            def block_code(self, code, info=None):
                escaped_code = mistune.escape(code)
                return '<pre style="white-space: pre-wrap;"><code>{}</code></pre>\n'.format(escaped_code)
        return mistune.create_markdown(
            renderer=CustomRenderer(),
            plugins=['table', 'task_lists', 'strikethrough']
        )

    def claim_slug(self, slug, file_path):
        """Reserve an output directory for file_path, refusing empty or shared slugs."""
        if not slug:
            raise EmptySlugError("Title has no characters usable in an output directory name", path=file_path)
        owner = self.claimed_slugs.get(slug)
        if owner is not None and owner != file_path:
            raise SlugCollisionError(
                f"Slug '{slug}' is already used by {owner}",
                path=file_path,
                other_path=owner,
            )
        self.claimed_slugs[slug] = file_path

    def release_slug(self, file_path):
        """Give up the slug claimed by a post that failed, removing its directory if still empty."""
        for slug, owner in list(self.claimed_slugs.items()):
            if owner != file_path:
                continue
            del self.claimed_slugs[slug]
            post_output_dir = os.path.join(self.output_dir, slug)
            try:
                if os.path.isdir(post_output_dir) and not os.listdir(post_output_dir):
                    os.rmdir(post_output_dir)
            except OSError as e:
                self.logger.debug(f"Could not remove {post_output_dir}: {e}")

    def read_source(self, file_path):
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise SourceReadError(f"Failed to read markdown file {file_path}: {e}", path=file_path) from e

    def resolve_attachments(self, image_refs, post_output_dir, post_path=None):
        """
        Copy each referenced image from the attachments directory into the
        post's output directory, keeping its relative sub-path.
        Returns the number of files copied.
        """
        attachments_root = os.path.abspath(self.attachments_dir)
        output_root = os.path.abspath(post_output_dir)
        copied = 0

        for ref in image_refs:
            source_path = os.path.normpath(os.path.join(attachments_root, ref))
            dest_path = os.path.normpath(os.path.join(output_root, ref))

            # Both ends must stay inside their directories
            if (os.path.isabs(ref)
                    or os.path.commonpath([attachments_root, source_path]) != attachments_root
                    or os.path.commonpath([output_root, dest_path]) != output_root):
                raise AttachmentCopyError(f"Attachment path escapes the attachments directory: {ref}", path=post_path)

            if not os.path.isfile(source_path):
                raise AttachmentCopyError(f"Attachment not found: {source_path}", path=post_path)

            try:
                os.makedirs(os.path.dirname(dest_path), exist_ok=True)
                shutil.copy2(source_path, dest_path)
            except OSError as e:
                raise AttachmentCopyError(f"Failed to copy attachment {source_path}: {e}", path=post_path) from e

            self.logger.debug(f"Copied attachment: {source_path} -> {dest_path}")
            copied += 1

        return copied

    def build_post(self, title, html_content, output_dir):
        """Render single.html for a post and write it as output_dir/index.html."""
        output_file_path = os.path.join(output_dir, 'index.html')
        try:
            template = self.env.get_template('single.html')
            rendered_html = template.render(title=title, body=html_content)
        except TemplateError as e:
            raise RenderError(f"Template error for {title}: {e}", path=output_file_path) from e

        try:
            with open(output_file_path, 'w', encoding='utf-8') as output_file:
                output_file.write(rendered_html)
        except OSError as e:
            raise WriteError(f"Failed to write HTML file {output_file_path}: {e}", path=output_file_path) from e

        self.logger.debug(f"Generated HTML: {output_file_path}")
        return output_file_path

    def process(self, file_path):
        """Process a single markdown file and return its manifest entry."""
        title = title_from_filename(os.path.basename(file_path))
        slug = sanitize_filename(title)
        self.claim_slug(slug, file_path)

        post_output_dir = os.path.join(self.output_dir, slug)
        try:
            os.makedirs(post_output_dir, exist_ok=True)
        except OSError as e:
            raise WriteError(f"Cannot create post directory {post_output_dir}: {e}", path=file_path) from e

        content = self.read_source(file_path)
        metadata = parse_post(content, title, source_path=file_path)
        self.logger.debug(f"Parsed {file_path}: date {metadata.date_key}, {len(metadata.image_refs)} image(s)")

        # The date line stays in the body; templates decide whether to show it
        html_content = self.markdown_filter(content)

        self.attachments_copied += self.resolve_attachments(metadata.image_refs, post_output_dir, post_path=file_path)
        self.build_post(metadata.title, html_content, post_output_dir)

        return ManifestEntry.from_metadata(metadata, slug)


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages (and all warnings) on the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Site build completed in",
            "Total posts generated:",
            "Total attachments copied:",
            "Total posts skipped:",
            "Building index page",
            "Serving at",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


class Rabla:
    def __init__(self, input_dir, output_dir, site_dir='site', site_title='Rabla!', templates_dir=None,
                 on_error='abort', log_dir=None, verbose=False):
        if on_error not in ERROR_POLICIES:
            raise ValueError(f"on_error must be one of {', '.join(ERROR_POLICIES)}, got {on_error!r}")

        self.input_dir = input_dir
        self.output_dir = output_dir
        self.site_dir = site_dir
        self.site_title = site_title
        self.templates_dir = templates_dir
        self.on_error = on_error
        self.log_dir = log_dir
        self.verbose = verbose
        self.posts_generated = 0
        self.attachments_copied = 0
        self.posts = []
        self.failures = []

        self.setup_logging()
        self.check_input_dir()
        self.create_output_dir()

        self.env = create_template_env(templates_dir)
        self.processor = PostProcessor(input_dir, output_dir, self.env)

    def setup_logging(self):
        """Set up logging configuration."""
        self.logger = logging.getLogger('Rabla')
        self.logger.setLevel(logging.DEBUG)

        if not self.logger.handlers:
            console_handler = logging.StreamHandler()
            if self.verbose:
                console_handler.setLevel(logging.DEBUG)
            else:
                console_handler.setLevel(logging.INFO)
                console_handler.addFilter(InfoFilter())
            console_handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(console_handler)

            # File handler for all logs
            if self.log_dir:
                os.makedirs(self.log_dir, exist_ok=True)
                log_filename = datetime.now().strftime('rabla_%Y-%m-%d_%H-%M-%S.log')
                file_handler = logging.FileHandler(os.path.join(self.log_dir, log_filename), encoding='utf-8')
                file_handler.setLevel(logging.DEBUG)
                file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
                self.logger.addHandler(file_handler)

    def check_input_dir(self):
        if not os.path.isdir(self.input_dir):
            raise DirectoryAccessError(f"Input directory does not exist: {self.input_dir}", path=self.input_dir)
        if not os.access(self.input_dir, os.R_OK | os.X_OK):
            raise DirectoryAccessError(f"Input directory is not readable: {self.input_dir}", path=self.input_dir)

    def create_output_dir(self):
        try:
            os.makedirs(self.output_dir, exist_ok=True)
        except OSError as e:
            raise DirectoryAccessError(f"Cannot create output directory {self.output_dir}: {e}", path=self.output_dir) from e

    def get_markdown_files(self, directory):
        """Get all markdown files directly inside a directory, by file name."""
        try:
            names = sorted(os.listdir(directory))
        except OSError as e:
            raise DirectoryAccessError(f"Cannot list directory {directory}: {e}", path=directory) from e

        markdown_files = []
        for name in names:
            file_path = os.path.join(directory, name)
            if is_markdown_file(name) and os.path.isfile(file_path):
                markdown_files.append(file_path)
        return markdown_files

    def build_posts(self):
        """Build every post and return the manifest entries in build order."""
        post_files = self.get_markdown_files(self.input_dir)
        if not post_files:
            self.logger.warning(f"No markdown files found in {self.input_dir}.")

        entries = []
        for file_path in post_files:
            try:
                entry = self.processor.process(file_path)
            except POST_ERRORS as e:
                if self.on_error == 'abort':
                    self.logger.debug(f"Aborting build at {file_path}: {e}")
                    raise
                self.logger.error(f"Skipping {file_path}: {e}")
                self.processor.release_slug(file_path)
                self.failures.append((file_path, e))
                continue

            entries.append(entry)
            self.posts_generated += 1
            self.logger.debug(f"Built post {entry.title} -> {entry.path}")

        self.attachments_copied = self.processor.attachments_copied
        self.posts = entries
        return list(entries)

    def create_site_dir(self):
        try:
            os.makedirs(self.site_dir, exist_ok=True)
        except OSError as e:
            raise DirectoryAccessError(f"Cannot create site directory {self.site_dir}: {e}", path=self.site_dir) from e

    def render_template(self, template_name, **context):
        """Render a Jinja2 template."""
        try:
            template = self.env.get_template(template_name)
            return template.render(**context)
        except TemplateError as e:
            raise RenderError(f"Template error in {template_name}: {e}", path=template_name) from e

    def write_file(self, path, text):
        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(text)
        except OSError as e:
            raise WriteError(f"Failed to write {path}: {e}", path=path) from e

    def build_index_page(self, entries):
        """Render index.html in the site directory from sorted manifest entries."""
        self.create_site_dir()
        html = self.render_template(
            'index.html',
            title=self.site_title,
            items=[entry.to_index_item() for entry in entries],
        )
        output_path = os.path.join(self.site_dir, 'index.html')
        self.write_file(output_path, html)
        self.logger.debug(f"Generated index page at {output_path}")
        self.logger.info("Building index page")
        return output_path

    def write_stylesheet(self):
        """Copy the style.css template verbatim into the site directory."""
        self.create_site_dir()
        try:
            css, _, _ = self.env.loader.get_source(self.env, 'style.css')
        except TemplateNotFound as e:
            raise RenderError(f"Stylesheet template not found: {e}", path='style.css') from e
        output_path = os.path.join(self.site_dir, 'style.css')
        self.write_file(output_path, css)
        return output_path

    def build(self):
        """Main build process. Returns the manifest, newest post first."""
        self.logger.info("Starting site build...")

        entries = self.build_posts()
        sorted_entries = sort_manifest(entries)

        self.build_index_page(sorted_entries)
        self.write_stylesheet()

        if self.failures:
            self.logger.warning(f"{len(self.failures)} post(s) were skipped because of errors")

        return sorted_entries
