import yaml
from pathlib import Path
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field, fields

from ..core.exceptions import ConfigError


DEFAULT_CVS_REPO = ":pserver:anoncvs@anoncvs.postgresql.org:2401/projects/cvsroot"
DEFAULT_BUILD_PORT = 5999

SCM_TYPES = ("cvs", "git")
SCM_METHODS = ("export", "update")


@dataclass(frozen=True)
class BuildFarmConfig:
    """Build farm client configuration, loaded once at startup"""
    build_root: str
    animal: str
    target: str
    secret: str
    print_success: bool = False
    keep_error_builds: bool = False
    force_every: Optional[float] = None  # hours
    make: str = "make"
    config_opts: List[str] = field(default_factory=list)
    scm: str = "cvs"
    scmrepo: Optional[str] = None
    scm_method: str = "export"
    branch_ports: Dict[str, int] = field(default_factory=dict)
    build_env: Dict[str, str] = field(default_factory=dict)
    config_env: Dict[str, str] = field(default_factory=dict)
    
    def __post_init__(self):
        if self.scm not in SCM_TYPES:
            raise ConfigError(f"scm must be one of {SCM_TYPES}, got {self.scm!r}")
        if self.scm_method not in SCM_METHODS:
            raise ConfigError(
                f"scm_method must be one of {SCM_METHODS}, got {self.scm_method!r}"
            )
    
    @property
    def repository(self) -> str:
        """Repository location, falling back to the public CVS server"""
        if self.scmrepo:
            return self.scmrepo
        if self.scm == "cvs":
            return DEFAULT_CVS_REPO
        raise ConfigError("scmrepo is required when scm is 'git'")
    
    def port_for(self, branch: str) -> int:
        """Port the test server listens on for a branch"""
        return int(self.branch_ports.get(branch, DEFAULT_BUILD_PORT))
    
    def workspace_name(self, pid: int) -> str:
        """Name of the directory builds happen in"""
        if self.scm_method == "export":
            return "pgsql"
        return f"pgsql.{pid}"
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BuildFarmConfig':
        """Create BuildFarmConfig from dictionary"""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {sorted(unknown)}")
        
        missing = [name for name in ("build_root", "animal", "target", "secret")
                   if not data.get(name)]
        if missing:
            raise ConfigError(f"Missing required configuration keys: {missing}")
        
        cdict = dict(data)
        # yaml gives us lists/dicts or None for empty sections
        for name in ("config_opts",):
            cdict[name] = list(cdict.get(name) or [])
        for name in ("branch_ports", "build_env", "config_env"):
            cdict[name] = {str(k): v for k, v in (cdict.get(name) or {}).items()}
        return cls(**cdict)
    
    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'BuildFarmConfig':
        """Load BuildFarmConfig from YAML file"""
        path = Path(yaml_path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")
        
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        
        if data is not None and not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping at the top level")
        
        return cls.from_dict(data or {})


def load_config(config_path: str = "build-farm.yaml") -> BuildFarmConfig:
    """
    Load the build farm configuration.
    
    Relative paths are resolved against the current directory, which is
    where cron starts us.
    """
    return BuildFarmConfig.from_yaml(config_path)
