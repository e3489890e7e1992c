# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import re
from pathlib import Path
from typing import Collection
from typing import Iterable
from typing import Mapping
from typing import Sequence

from provisioning._errors import HostSetNotFound
from provisioning._errors import ParseError


class Host:
    """Inventory host with its attributes.

    >>> host = Host.parse('web1', ' ansible_host=10.0.0.1 role=primary')
    >>> host
    Host('web1', {'ansible_host': '10.0.0.1', 'role': 'primary'})
    >>> host.attribute('role')
    'primary'
    >>> host == Host('web1', {'role': 'primary', 'ansible_host': '10.0.0.1'})
    True
    """

    _attribute_re = re.compile(r'(\S+)=(\S+)')

    def __init__(self, name: str, attributes: Mapping[str, str]):
        self.name = name
        self._attributes = dict(attributes)

    @classmethod
    def parse(cls, name: str, attribute_string: str) -> 'Host':
        return cls(name, dict(cls._attribute_re.findall(attribute_string)))

    def __repr__(self):
        return f'{Host.__name__}({self.name!r}, {self._attributes!r})'

    def __eq__(self, other):
        if not isinstance(other, Host):
            return NotImplemented
        return self.name == other.name and self._attributes == other._attributes

    def __hash__(self):
        return hash((self.name, frozenset(self._attributes.items())))

    def attribute(self, key: str) -> str:
        return self._attributes[key]

    def attributes(self) -> Mapping[str, str]:
        return dict(self._attributes)


class InventoryFile:

    _section_re = re.compile(r'\[([^\]]+)\]')
    _host_re = re.compile(r'([\w.-]+)(.*)')
    _skip_re = re.compile(r'\s*(#.*)?')

    def __init__(self, host_sets: Mapping[str, Collection[Host]]):
        self._host_sets = {name: tuple(hosts) for name, hosts in host_sets.items()}

    @classmethod
    def read(cls, path: Path) -> 'InventoryFile':
        _logger.debug("Read inventory %s", path)
        with open(path, encoding='utf-8') as f:
            return cls.parse(f)

    @classmethod
    def parse(cls, lines: Iterable[str]) -> 'InventoryFile':
        """Parse inventory document line by line.

        >>> inventory = InventoryFile.parse([
        ...     '# Web tier',
        ...     '[web]',
        ...     'host1 ansible_host=10.0.0.1',
        ...     '',
        ...     '[db]',
        ...     'host2 ansible_host=10.0.0.2 role=primary',
        ...     ])
        >>> inventory.host_set_names()
        ['web', 'db']
        >>> inventory.host_set('db')
        (Host('host2', {'ansible_host': '10.0.0.2', 'role': 'primary'}),)
        >>> InventoryFile.parse(['host1 ansible_host=10.0.0.1'])  # doctest: +IGNORE_EXCEPTION_DETAIL
        Traceback (most recent call last):
        ...
        provisioning._errors.ParseError: need a host set entry first
        """
        host_sets = {}
        current_host_set = None
        for line in lines:
            line = line.rstrip('\r\n')
            if cls._skip_re.fullmatch(line):
                continue
            section_match = cls._section_re.fullmatch(line)
            if section_match is not None:
                current_host_set = section_match.group(1)
                host_sets.setdefault(current_host_set, {})
                continue
            host_match = cls._host_re.fullmatch(line)
            if host_match is None:
                raise ParseError(f"Cannot parse {line!r}")
            if current_host_set is None:
                raise ParseError("need a host set entry first")
            host = Host.parse(host_match.group(1), host_match.group(2))
            # Dict keys keep hosts unique and in order of first appearance.
            host_sets[current_host_set][host] = None
        return cls(host_sets)

    def host_set_names(self) -> Sequence[str]:
        return list(self._host_sets)

    def host_set(self, name: str) -> Sequence[Host]:
        try:
            return self._host_sets[name]
        except KeyError:
            raise HostSetNotFound(name)


_logger = logging.getLogger(__name__)
