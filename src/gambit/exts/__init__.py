import pkgutil


__all__ = ("EXTENSIONS",)

EXTENSIONS: tuple[str, ...] = tuple(module.name for module in pkgutil.iter_modules(__path__, f"{__package__}."))
