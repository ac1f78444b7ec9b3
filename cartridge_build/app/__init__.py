from cartridge_build.app.plan import BuildPlan, build_plan, plan_from_config, run

__all__ = ["BuildPlan", "build_plan", "plan_from_config", "run"]
