class ThemebarsError(Exception):
    # base exception for all application-specific errors.
    pass

class ConfigError(ThemebarsError):
    # errors related to configuration.
    pass

class AssemblerError(ThemebarsError):
    # errors while retrieving template or translation sources.
    pass

class TemplateError(ThemebarsError):
    # errors related to template rendering.
    pass

class TemplateNotFoundError(TemplateError):
    # a template path was rendered before it was loaded.
    def __init__(self, path: str):
        super().__init__(f"template '{path}' has not been loaded")
        self.path = path

class TemplateCompileError(TemplateError):
    # invalid template source or precompiled artifact.
    pass

class OutputError(ThemebarsError):
    # errors during output operations.
    pass
