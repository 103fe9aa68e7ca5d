class PostPrepareError(RuntimeError):
    pass


class MissingPlatformsDirectory(PostPrepareError):
    def __init__(self, project_root):
        super().__init__(
            f"No platforms directory found in {project_root}. "
            "Please run script from the root of your project."
        )
        self.project_root = project_root


class LocaleNameCollision(PostPrepareError):
    def __init__(self, source, destination):
        super().__init__(f"Cannot rename {source} -> {destination}: destination already exists")
        self.source = source
        self.destination = destination


class ManifestMergeError(PostPrepareError):
    pass


class MalformedPlatformXml(PostPrepareError):
    def __init__(self, xml_path, reason: str):
        super().__init__(f"{xml_path}: {reason}")
        self.xml_path = xml_path
        self.reason = reason
