# app.py
"""
Painel de Metas - Main Entry Point

Version: 3.0.0
"""

import streamlit as st
from utils.auth import AuthManager
from utils.db import check_db_connection, run_async
from utils.goal_pacing import AccessControl
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ==================== PAGE CONFIGURATION ====================

APP_NAME = "Painel de Metas"
APP_ICON = "🎯"
APP_VERSION = "3.0.0"

st.set_page_config(
    page_title=APP_NAME,
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# ==================== CUSTOM CSS ====================

st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        margin-bottom: 0.5rem;
        color: #1565c0;
    }

    .sub-header {
        font-size: 1.1rem;
        color: #666;
        margin-bottom: 2rem;
    }

    .welcome-box {
        background: linear-gradient(135deg, #1565c0 0%, #28a745 100%);
        color: white;
        padding: 2rem;
        border-radius: 0.75rem;
        margin-bottom: 2rem;
    }

    .welcome-title {
        font-size: 1.75rem;
        font-weight: 600;
        margin-bottom: 0.5rem;
    }

    .info-card {
        background: #f8f9fa;
        padding: 1.5rem;
        border-radius: 0.5rem;
        border-left: 4px solid #1565c0;
        margin-bottom: 1rem;
    }

    .footer {
        text-align: center;
        color: #888;
        padding: 1rem;
        margin-top: 3rem;
        border-top: 1px solid #eee;
        font-size: 0.9rem;
    }
</style>
""", unsafe_allow_html=True)

# ==================== INITIALIZATION ====================

auth = AuthManager()

# ==================== HELPER FUNCTIONS ====================

def show_login_page():
    """Display the login page"""
    st.markdown(f'<p class="main-header">{APP_ICON} {APP_NAME}</p>', unsafe_allow_html=True)
    st.markdown('<p class="sub-header">Acompanhamento diário de metas por loja e colaborador</p>', unsafe_allow_html=True)

    db_ok, db_error = run_async(check_db_connection())
    if not db_ok:
        st.error(f"⚠️ {db_error}")
        st.info("Verifique a conexão de rede ou fale com o suporte.")
        return

    col1, col2, col3 = st.columns([1, 2, 1])

    with col2:
        with st.form("login_form", clear_on_submit=False):
            st.markdown("#### 🔐 Login")

            username = st.text_input(
                "Usuário",
                placeholder="Seu login",
                key="login_username"
            )
            password = st.text_input(
                "Senha",
                type="password",
                placeholder="Sua senha",
                key="login_password"
            )

            submit = st.form_submit_button(
                "🔑 Entrar",
                type="primary",
                use_container_width=True
            )

            if submit:
                if not username or not password:
                    st.warning("Informe usuário e senha")
                else:
                    with st.spinner("Autenticando..."):
                        success, result = auth.authenticate(username, password)

                    if success:
                        auth.login(result)
                        st.success("✅ Login realizado!")
                        st.rerun()
                    else:
                        st.error(result.get("error", "Falha na autenticação"))


def show_main_app():
    """Display the main application after login"""
    access = AccessControl(
        user_role=st.session_state.get('user_role', ''),
        user_id=st.session_state.get('user_id'),
        store_id=st.session_state.get('store_id')
    )

    with st.sidebar:
        st.markdown(f"### 👤 {auth.get_user_display_name()}")

        level = access.get_access_level()
        if level == 'full':
            st.success("🔓 Todas as lojas")
        elif level == 'store':
            st.info("🏪 Acesso à loja")
        else:
            st.warning("👤 Acesso individual")

        st.caption(f"Perfil: {access.user_role}")
        st.markdown("---")

        if st.button("🚪 Sair", use_container_width=True):
            auth.logout()
            st.rerun()

    st.markdown(f"""
    <div class="welcome-box">
        <div class="welcome-title">Olá, {auth.get_user_display_name()}! 👋</div>
        <div>Escolha um painel no menu lateral.</div>
    </div>
    """, unsafe_allow_html=True)

    st.markdown("### 📊 Painéis")

    st.markdown("""
    <div class="info-card">
        <strong>🎯 Metas Diárias</strong><br>
        <span style="color: #666;">Meta de hoje por categoria, progresso do período e ritmo da equipe.</span>
    </div>
    """, unsafe_allow_html=True)

    if auth.is_admin():
        st.markdown("---")
        with st.expander("🔧 Status do sistema (admin)"):
            db_ok, db_error = run_async(check_db_connection())
            st.metric("Banco de dados", "OK" if db_ok else "ERRO")
            if db_error:
                st.caption(db_error)

    st.markdown(f"""
    <div class="footer">
        <strong>{APP_NAME}</strong> v{APP_VERSION}
    </div>
    """, unsafe_allow_html=True)


# ==================== MAIN ====================

def main():
    """Main application entry point"""
    if not auth.check_session():
        show_login_page()
    else:
        show_main_app()


if __name__ == "__main__":
    main()
