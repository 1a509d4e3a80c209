"""oslo.config options for embedding the tunnel router in a host service.

Services built on oslo.config register these options next to their own and
build :class:`~tunroute.config.RouterSettings` from the parsed values.  The
standalone daemon reads the same knobs from YAML instead (see
:mod:`tunrouted.config`).
"""

from oslo_config import cfg

from tunroute.config import DEFAULT_BOOTSTRAP_ADDRESS, DEFAULT_SYSCTLS, RouterSettings
from tunroute.readiness import RetryPolicy

router_opts = [
    cfg.StrOpt('tun_interface',
               default='tun0',
               help='Name of the tunnel interface managed by the router.'),
    cfg.StrOpt('tun_bootstrap_address',
               default=DEFAULT_BOOTSTRAP_ADDRESS,
               help='Address assigned when the interface is brought up. '
                    'Set to an empty string to bring it up without one.'),
    cfg.ListOpt('tun_sysctls',
                default=list(DEFAULT_SYSCTLS),
                help='sysctl settings applied when the interface comes up, '
                     'in name=value form.'),
    cfg.IntOpt('tun_ready_max_attempts',
               default=80,
               min=1,
               help='How many times to poll the interface status after '
                    'bringing it up.'),
    cfg.FloatOpt('tun_ready_interval',
                 default=0.05,
                 min=0,
                 help='Seconds to wait between interface status polls.'),
    cfg.FloatOpt('tun_command_timeout',
                 default=None,
                 help='Timeout in seconds for each ifconfig/route command. '
                      'Unset means no timeout.'),
]


def register_router_opts(conf=cfg.CONF):
    """Register the router options with ``conf`` (the DEFAULT group)."""
    conf.register_opts(router_opts)


def settings_from_conf(conf=cfg.CONF):
    """Build :class:`RouterSettings` from registered oslo.config options.

    Args:
        conf: ConfigOpts instance the options were registered on.

    Returns:
        RouterSettings for the configured interface.
    """
    return RouterSettings(
        interface=conf.tun_interface,
        bootstrap_address=conf.tun_bootstrap_address or None,
        sysctls=tuple(conf.tun_sysctls or ()),
        readiness=RetryPolicy(
            max_attempts=conf.tun_ready_max_attempts,
            interval=conf.tun_ready_interval,
        ),
        command_timeout=conf.tun_command_timeout,
    )
