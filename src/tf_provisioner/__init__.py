"""tf-provisioner: reconcile instance specs into Terraform JSON documents."""

__version__ = "0.1.0"
