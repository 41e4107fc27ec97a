"""Allow ``python -m base_image_resolver``."""

from .cli import main

if __name__ == "__main__":
    main()
