from folio.errors import GeneratorError
from folio.generators.base import BaseGenerator
from folio.generators.ebook import EbookGenerator
from folio.generators.json import JsonGenerator
from folio.generators.site import SiteGenerator

GENERATORS = {
    "site": SiteGenerator,
    "json": JsonGenerator,
    "ebook": EbookGenerator,
}

DEFAULT_GENERATOR = "site"


def register_generator(name, generator_cls):
    """Make a BaseGenerator subclass available to Book.generate() under `name`."""
    if not (isinstance(generator_cls, type) and issubclass(generator_cls, BaseGenerator)):
        raise GeneratorError(f"Generator '{name}' must subclass BaseGenerator")
    GENERATORS[name] = generator_cls


def get_generator(name):
    generator_cls = GENERATORS.get(name)
    if generator_cls is None:
        raise GeneratorError(
            f"Generator '{name}' doesn't exist (available: {', '.join(sorted(GENERATORS))})"
        )
    return generator_cls
