#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Simple utility functions used by this package
"""

from __future__ import annotations

from typing_extensions import SupportsIndex

import netifaces
import re
import socket
from ipaddress import IPv4Address

from .internal_types import *

from requests.structures import CaseInsensitiveDict

def split_bytes_at_lf_or_crlf(data: bytes, maxsplit: SupportsIndex = -1) -> List[bytes]:
    """Split a byte string at LF or CRLF.

    If maxsplit is given, at most maxsplit splits are done.

    Returns a List[bytes] representing the delimiteds lines with the delimiters removed.
    """
    parts = data.split(b'\n', maxsplit)
    if len(parts) > 1:
        for i, part in enumerate(parts[:-1]):
            if part.endswith(b'\r'):
                parts[i] = part[:-1]
    # A trailing CR on the last line is a truncated CRLF
    if len(parts) > 0 and parts[-1].endswith(b'\r'):
        parts[-1] = parts[-1][:-1]
    return parts

def escape_for_log(data: Union[str, bytes]) -> str:
    """Escapes backslashes, CRs and LFs so that a raw payload can be logged on a single line."""
    if isinstance(data, bytes):
        data = data.decode('utf-8', errors='replace')
    return data.replace('\\', '\\\\').replace('\r', '\\r').replace('\n', '\\n')

def resolve_host(host: str) -> Optional[str]:
    """Resolves a host name or dotted IPv4 address string to a dotted IPv4 address string.

    Returns None if the name cannot be resolved.
    """
    try:
        return socket.gethostbyname(host)
    except (socket.gaierror, UnicodeError, OSError):
        return None

_last_octet_re = re.compile(r'[0-9]+$')
def get_broadcast_address(ip_address: str) -> str:
    """Returns the broadcast address for an IPv4 address, assuming a /24 network.

    The last octet is replaced with 255. This is only an approximation; it is wrong
    for any network whose mask is not 255.255.255.0.
    """
    return _last_octet_re.sub('255', ip_address)

def get_local_ip_addresses_and_interfaces(include_loopback: bool=True) -> List[Tuple[str, str]]:
    """Returns a list of Tuple[ip_address: str, interface_name: str] for the IPv4 addresses of the local host.
       The result is sorted in a way that attempts to place the "preferred"
       canonical IP address first in the list, according to the following scheme:
           1. Addresses on the default gateway interface precede all other addresses.
           2. Non-loopback addresses precede loopback addresses.
           3. IPV4 addresses that begin with 172. follow other IPV4 addresses. This is a hack to
              deprioritize local docker network addresses.
    """
    result_with_priority: List[Tuple[int, str, str]] = []
    _, default_gateway_ifname = get_default_ip_gateway()
    for ifname in netifaces.interfaces():
        ifinfo = netifaces.ifaddresses(ifname)
        if netifaces.AF_INET in ifinfo:
            for addrinfo in ifinfo[netifaces.AF_INET]:
                ip_str = addrinfo['addr']
                assert isinstance(ip_str, str)
                if ifname == default_gateway_ifname:
                    priority = 0
                elif IPv4Address(ip_str).is_loopback:
                    if not include_loopback:
                        continue
                    priority = 3
                elif ip_str.startswith('172.'):
                    priority = 2
                else:
                    priority = 1
                result_with_priority.append((priority, ip_str, ifname))
    return [ (ip, ifname) for _, ip, ifname in sorted(result_with_priority)]

def get_local_ip_addresses(include_loopback: bool=True) -> List[str]:
    """Returns a List[ip_address: str] for the IPv4 addresses of the local host, preferred address first.
       See get_local_ip_addresses_and_interfaces() for the ordering."""
    return [ ip for ip, _ in get_local_ip_addresses_and_interfaces(include_loopback=include_loopback)]

def get_local_broadcast_addresses() -> List[str]:
    """Returns the IPv4 broadcast addresses of all local non-loopback interfaces, preferred interface first,
       without duplicates. Interfaces that do not report a broadcast address (e.g., point-to-point links)
       are skipped."""
    result: List[str] = []
    for ip, ifname in get_local_ip_addresses_and_interfaces(include_loopback=False):
        for addrinfo in netifaces.ifaddresses(ifname).get(netifaces.AF_INET, []):
            if addrinfo.get('addr') != ip:
                continue
            broadcast = addrinfo.get('broadcast')
            if isinstance(broadcast, str) and not broadcast in result:
                result.append(broadcast)
    return result

def get_default_ip_gateway() -> Tuple[Optional[str], Optional[str]]:
    """Returns the (gateway_ip_address: str, gateway_interface_name: str) for the default IPv4 gateway, if any.
       returns (None, None) if there is no default gateway."""
    gws = netifaces.gateways()
    if "default" in gws:
        default_gateway_infos = gws["default"]
        if netifaces.AF_INET in default_gateway_infos:
            gw_ip, gw_interface_name = default_gateway_infos[netifaces.AF_INET][:2]
            return (gw_ip, gw_interface_name)
    return (None, None)

def full_name_of_type(t: Type) -> str:
    """Returns the fully qualified name of a python type"""
    module: str = t.__module__
    if module == 'builtins':
        result: str = t.__qualname__
    else:
        result = module + '.' + t.__qualname__
    return result

def full_type(o: Any) -> str:
    """Returns the fully qualified name of an object or value's type"""
    return full_name_of_type(o.__class__)
