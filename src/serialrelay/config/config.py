"""
File based configuration, applied to module level attributes.

A module's configuration is read from files named after the module. Apart from the user's file,
they live beside the module's source:

- <name>.default.cfg    the shipped defaults
- <name>.<platform>.cfg platform specific values (windows, linux, osx)
- ~/<name>.cfg          the user's overrides
- <name>.cfg            local overrides
- any extra files given, in order

Later files override earlier ones. The merged result is validated against <name>.schema.cfg,
which also supplies defaults and converts values to their declared types. Values sit in sections
nested after the module's dotted name, e.g. [serialrelay] [[relay]].
"""
import logging
import os
import platform

from configobj import ConfigObj, ConfigObjError, Section, flatten_errors
from validate import Validator

logger = logging.getLogger(__name__)

config_extension = '.cfg'

# platform.system() names that differ from the flavor used in file names
platform_flavors = {'darwin': 'osx'}


def config_path(name, directory=None, flavor=None):
    """
    >>> config_path('relay', 'conf', 'schema').replace(os.sep, '/')
    'conf/relay.schema.cfg'
    >>> config_path('relay')
    'relay.cfg'
    """
    basename = '.'.join(part for part in (name, flavor) if part) + config_extension
    return os.path.join(directory or '', basename)


def user_config_path(name):
    return os.path.join(os.path.expanduser('~'), name + config_extension)


def platform_name(system=None):
    """
    The flavor of configuration file for this platform.

    >>> platform_name('Windows')
    'windows'
    >>> platform_name('Darwin')
    'osx'
    """
    system = (system or platform.system()).lower()
    return platform_flavors.get(system, system)


def read_config_file(path, required=True) -> ConfigObj:
    """
    Parses one configuration file.
    :param required: when False, a missing file reads as empty
    :raises IOError: when a required file does not exist
    :raises ConfigObjError: when the file cannot be parsed. The message names the file.
    """
    if not required and not os.path.exists(path):
        return ConfigObj()
    try:
        return ConfigObj(path, interpolation='Template', file_error=True)
    except ConfigObjError as e:
        raise type(e)("%s at %s" % (e, path))


def validation_problems(config, result):
    """
    Describes each failed check in a validation result as section.key: error. A result of
    False, where every check failed without a preserved error, cannot be itemized.
    """
    if result is False:
        yield "no value passed validation"
        return
    for sections, key, error in flatten_errors(config, result):
        location = '.'.join(sections + [key] if key else sections)
        yield '%s: %s' % (location, error or 'missing')


def load_config(name, directory, extra_files=()):
    """
    Reads and merges the configuration files for the given name, then validates the result.
    :param directory: where the configuration files live
    :param extra_files: files merged last. Each must exist.
    :raises ConfigObjError: when a file cannot be parsed or the result fails validation
    """
    layers = [read_config_file(config_path(name, directory, 'default'), required=False),
              read_config_file(config_path(name, directory, platform_name()), required=False),
              read_config_file(user_config_path(name), required=False),
              read_config_file(config_path(name, directory), required=False)]
    layers += [read_config_file(path) for path in extra_files]

    schema = config_path(name, directory, 'schema')
    config = ConfigObj(configspec=schema if os.path.exists(schema) else None)
    for layer in layers:
        config.merge(layer)

    if config.configspec is None:
        return config
    result = config.validate(Validator(), preserve_errors=True)
    if result is not True:
        raise ConfigObjError("the config file %s failed validation: %s"
                             % (name, '; '.join(validation_problems(config, result))))
    return config


def find_section(config: Section, names):
    """ the section reached by following the given section names, or None """
    section = config
    for name in names:
        section = section.get(name)
        if not isinstance(section, Section):
            return None
    return section


def apply_section(section: Section, target):
    """
    Copies each value in the section to the attribute of the same name on target. Values with no
    matching attribute are logged and skipped, as are subsections.
    :return: the names of the attributes set
    """
    applied = []
    for name, value in section.items():
        if isinstance(value, Section):
            continue
        if not hasattr(target, name):
            logger.warning("ignoring unknown setting %s" % name)
            continue
        setattr(target, name, value)
        applied.append(name)
    return applied


def module_name(module):
    """
    The dotted name of a module, including when it is run with python -m.
    :raises ConfigObjError: when the module is not part of a package
    """
    if not module.__package__:
        raise ConfigObjError('module %s has no package defined' % module.__name__)
    if module.__name__ != '__main__':
        return module.__name__
    spec = getattr(module, '__spec__', None)
    if spec is not None:
        return spec.name
    return module.__package__ + '.' + os.path.splitext(os.path.basename(module.__file__))[0]


def configure_module(module, config_name=None, extra_files=()):
    """
    Sets the module's attributes from its configuration.
    :param config_name: the base name of the configuration files. Defaults to the module's name.
    :param extra_files: further files, applied over the module's own
    :return: the names of the attributes set
    """
    names = module_name(module).split('.')
    config = load_config(config_name or names[-1], os.path.dirname(module.__file__), extra_files)
    section = find_section(config, names)
    applied = apply_section(section, module) if section is not None else []
    logger.debug("configured %s: %s" % ('.'.join(names), ', '.join(applied)))
    return applied
